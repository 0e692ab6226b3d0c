import sys
import logging

from config import EngineConfig
from errors import PaymentsEngineError
from payments_engine import PaymentsEngine
from snapshot import write_snapshot

logger = logging.getLogger(__name__)


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("Usage: python main.py <input.csv>", file=sys.stderr)
        return 1

    try:
        config = EngineConfig.from_env()
    except PaymentsEngineError as e:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s", stream=sys.stderr)
        logger.error(f"Invalid configuration: {e}")
        return 1

    logging.basicConfig(
        level=config.log_level,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )

    filepath = argv[0]
    try:
        accounts = PaymentsEngine(config).process_file(filepath)
    except PaymentsEngineError as e:
        logger.error(f"Failed to process {filepath}: {e}")
        return 1

    write_snapshot(accounts, sys.stdout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
