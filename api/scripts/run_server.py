import argparse
import logging
import sys
from pathlib import Path

import uvicorn

sys.path.append(str(Path(__file__).resolve().parents[1]))

from dmgt_assessment.config import LOG_LEVEL


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the assessment API server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=3001)
    parser.add_argument("--reload", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    uvicorn.run("dmgt_assessment.main:app", host=args.host, port=args.port, reload=args.reload, log_level=LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
