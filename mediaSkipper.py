#!/usr/bin/env python3
import argparse, signal, sys, time, traceback, types
from threading import Event, Lock

from skipmedia import log95, Path
from skipmedia.config import DEFAULT_CONFIG_PATH, SkipConfig
from skipmedia.edl import EdlParser
from skipmedia.engine import SkipEngine
from skipmedia.scheduler import PollScheduler
from skipmedia.session_manager import SessionManager
from skipmedia.web import HostBridge

class MediaSkipper:
    def __init__(self, config: SkipConfig, output: log95.TextIO):
        self.config = config
        self.exit_status_code = 0
        self.intr_time: float | None = None
        self.exit_lock = Lock()
        self.exit_event = Event()
        self.logger = log95.log95("CORE", output=output)
        self.session_manager = SessionManager(output)
        self.engine = SkipEngine(self.session_manager, output, EdlParser(output, config.edl_cache_ttl))
        self.scheduler = PollScheduler(self.engine.scan, config.interval_seconds, output)
        self.bridge = HostBridge(self.session_manager, config.web_host, config.web_port, output) if config.web_enabled else None

    def start(self):
        self.logger.info("Skipper starting")
        if self.bridge: self.bridge.start()
        else: self.logger.warning("Host bridge disabled, sessions have to be fed in-process")
        self.scheduler.start()

    def shutdown(self):
        self.logger.info("Skipper stopping")
        self.scheduler.stop()
        if self.bridge: self.bridge.shutdown()
        self.engine.close()

    def request_exit(self, code: int = 0):
        self.exit_status_code = code
        self.exit_event.set()

    def handle_sigint(self, signum: int, frame: types.FrameType | None):
        with self.exit_lock:
            self.logger.info("Received CTRL+C (SIGINT)")
            if (now := time.monotonic()) and (self.intr_time is None or (now - self.intr_time) > 5):
                self.intr_time = now
                self.logger.info("Will quit after the current scan.")
                self.request_exit(130)
            else:
                self.logger.warning("Force-Quit pending")
                raise SystemExit(130)

    def handle_sigterm(self, signum: int, frame: types.FrameType | None):
        self.logger.info("Received SIGTERM")
        self.request_exit(143)

    def loop(self):
        """Blocks until an exit is requested, then raises SystemExit with the status code"""
        while not self.exit_event.wait(1): pass
        raise SystemExit(self.exit_status_code)

def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Skips the segments listed in .edl sidecar files during playback", prog="mediaSkipper")
    parser.add_argument("-c", "--config", type=Path, default=DEFAULT_CONFIG_PATH, help=f"Config file (default: {DEFAULT_CONFIG_PATH})")
    parser.add_argument("-i", "--interval", type=int, help="Session check interval in milliseconds")
    parser.add_argument("--no-web", action="store_true", help="Don't start the websocket host bridge")
    parser.add_argument("--port", type=int, help="Port of the websocket host bridge")
    parser.add_argument("--log-file", type=str, help="Where to write the log")
    return parser.parse_args(argv)

def build_config(args: argparse.Namespace) -> SkipConfig:
    config = SkipConfig.load(args.config, log95.log95("CONFIG", output=sys.stderr))
    if args.interval is not None: config.session_check_interval = args.interval
    if args.no_web: config.web_enabled = False
    if args.port is not None: config.web_port = args.port
    if args.log_file: config.log_file = args.log_file
    return config.validate()

def main(argv: list[str] | None = None):
    config = build_config(parse_arguments(argv))
    log_file_path = Path(config.log_file)
    log_file_path.touch()

    core = MediaSkipper(config, open(log_file_path, "w", buffering=1))
    try:
        core.start()
        signal.signal(signal.SIGINT, core.handle_sigint)
        signal.signal(signal.SIGTERM, core.handle_sigterm)
        core.loop()
    except SystemExit:
        try: core.shutdown()
        except BaseException: traceback.print_exc()
        raise
    finally: core.logger.output.close()

if __name__ == "__main__":
    main()
