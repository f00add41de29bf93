import argparse
import logging
import sys

from factorpool.api import create_app
from factorpool.config import Settings
from factorpool.coordinator import Coordinator
from factorpool.errors import InvalidArgument
from factorpool.hub import ConnectionHub
from factorpool.sources import FileResultSink, FileTargetSource, TargetPoller

logger = logging.getLogger("factorpool")


def parse_args(argv=None, settings: Settings | None = None) -> Settings:
    s = settings or Settings.from_env()
    ap = argparse.ArgumentParser(description="Coordinate trial-division workers on one target.")
    ap.add_argument("--host", default=s.host)
    ap.add_argument("--port", type=int, default=s.port)
    ap.add_argument("--target-file", default=s.target_file)
    ap.add_argument("--results-file", default=s.results_file)
    ap.add_argument("--poll-interval", type=float, default=s.poll_interval_s, help="seconds between target re-reads")
    args = ap.parse_args(argv)
    return Settings(host=args.host, port=args.port, target_file=args.target_file,
                    results_file=args.results_file, poll_interval_s=args.poll_interval,
                    keepalive_s=s.keepalive_s, log_level=s.log_level)


def main(argv=None):
    try:
        settings = parse_args(argv)
    except InvalidArgument as e:
        print(f"config error: {e}", file=sys.stderr)
        sys.exit(1)
    logging.basicConfig(level=settings.log_level,
                        format="[%(asctime)s] %(levelname)-8s %(message)s", datefmt="%H:%M:%S")
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    coordinator = Coordinator(ConnectionHub(), FileResultSink(settings.results_file))
    source = FileTargetSource(settings.target_file)
    try:
        coordinator.load_target(source.read_current_target())
    except (OSError, InvalidArgument) as e:
        logger.error(f"error reading {settings.target_file}: {e}")
        sys.exit(1)

    poller = TargetPoller(source, coordinator, settings.poll_interval_s)
    poller.start()

    app = create_app(settings, coordinator)
    logger.info(f"server running on {settings.host}:{settings.port}")
    app.run(settings.host, settings.port, threaded=True)


if __name__ == "__main__":
    main()
