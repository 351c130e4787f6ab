import argparse
import json
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from dmgt_assessment.config import QUESTIONS_PATH
from dmgt_assessment.question_loader import check_question_registry


def main() -> None:
    parser = argparse.ArgumentParser(description="Check a question registry file for definition errors")
    parser.add_argument("path", nargs="?", default=str(QUESTIONS_PATH))
    args = parser.parse_args()

    with open(args.path, "r", encoding="utf-8") as f:
        registry = json.load(f)

    errors = check_question_registry(registry)
    print(json.dumps({"path": args.path, "ok": not errors, "errors": errors}, indent=2))
    if errors:
        sys.exit(1)


if __name__ == "__main__":
    main()
