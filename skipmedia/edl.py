import math, os, re
import libcache
from . import log95, Path, SkipRange

EDL_EXTENSION = ".edl"
_FIELD_SEPARATORS = re.compile(r"[ \t]+")

def resolve_edl_path(media_path: str) -> str:
    """Swaps the extension of the media file for .edl, /movies/foo.mkv -> /movies/foo.edl"""
    separators = os.sep + (os.altsep or "")
    name_start = max(media_path.rfind(sep) for sep in separators) + 1
    dot = media_path.rfind(".")
    if dot >= name_start: media_path = media_path[:dot]
    return media_path + EDL_EXTENSION

def _parse_seconds(text: str) -> float | None:
    try: value = float(text)
    except ValueError: return None
    if not math.isfinite(value): return None
    return value

def parse_edl_line(line: str) -> SkipRange | None:
    parts = [p for p in _FIELD_SEPARATORS.split(line.strip()) if p]
    if len(parts) < 2: return None
    start, end = _parse_seconds(parts[0]), _parse_seconds(parts[1])
    if start is None or end is None: return None
    return SkipRange(int(start), int(end))

class EdlParser:
    def __init__(self, output: log95.TextIO, cache_ttl: float = 0) -> None:
        self.logger = log95.log95("EDL", output=output)
        self.cache_ttl = cache_ttl
        self.range_cache = libcache.Cache([])

    def _read_ranges(self, edl_path: Path) -> list[SkipRange]:
        ranges = []
        with open(edl_path, "r", encoding="utf-8-sig") as f:
            for line in f:
                if (skip_range := parse_edl_line(line)) is not None: ranges.append(skip_range)
        return ranges

    def load_skip_ranges(self, edl_path: str | Path) -> list[SkipRange]:
        """
        Reads the skip ranges of an EDL file, every call goes to disk unless cache_ttl is set
        A missing file just means there's nothing to skip, an unreadable one is logged and treated the same
        """
        edl_path = Path(edl_path)
        try:
            stat = edl_path.stat()
        except FileNotFoundError: return []
        except OSError as e:
            self.logger.error(f"Can't access {edl_path}: {e}")
            return []

        key = f"{edl_path.as_posix()}:{stat.st_mtime_ns}:{stat.st_size}"
        if self.cache_ttl > 0 and (cached := self.range_cache.getElement(key, False)) is not None: return list(cached)

        try: ranges = self._read_ranges(edl_path)
        except FileNotFoundError: return []
        except (OSError, UnicodeDecodeError) as e:
            self.logger.error(f"Failed to read {edl_path.name}: {e}")
            return []

        if self.cache_ttl > 0: self.range_cache.saveElement(key, ranges, self.cache_ttl, False, True)
        return list(ranges)

    def clear_cache(self) -> None: self.range_cache.clearCache()
