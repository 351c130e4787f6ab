"""Fill in an assessment from a JSON file of answers and save or submit it.

The answers file maps question ids to values. Values of file questions may be
local paths; they are uploaded first and replaced by the stored references.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from dmgt_assessment.client.app import create_session, initialize_app
from dmgt_assessment.client.errors import ValidationFailed
from dmgt_assessment.config import LOG_LEVEL


def main() -> None:
    parser = argparse.ArgumentParser(description="Save or submit assessment answers through the API")
    parser.add_argument("assessment_type", choices=["Company", "Employee"])
    parser.add_argument("company_id")
    parser.add_argument("answers", help="JSON file mapping question ids to answers")
    parser.add_argument("--employee-id")
    parser.add_argument("--api-url")
    parser.add_argument("--submit", action="store_true", help="submit instead of saving a draft")
    args = parser.parse_args()

    logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    overrides = {"api_url": args.api_url} if args.api_url else {}
    app_state = initialize_app(**overrides)
    if not app_state.ok:
        print(app_state.error, file=sys.stderr)
        sys.exit(2)

    with open(args.answers, "r", encoding="utf-8") as f:
        answers = json.load(f)

    session = create_session(app_state)
    try:
        form_errors = session.start(
            {"assessmentType": args.assessment_type, "companyId": args.company_id, "employeeId": args.employee_id}
        )
        if form_errors:
            print(json.dumps(form_errors, indent=2), file=sys.stderr)
            sys.exit(2)

        for question_id, value in answers.items():
            question = session.state.question(question_id)
            if question is not None and question.type == "file" and isinstance(value, (str, list)):
                for path in [value] if isinstance(value, str) else value:
                    session.upload(question_id, path)
            else:
                session.update_response(question_id, value)

        if args.submit:
            if not session.submit():
                if session.errors:
                    raise ValidationFailed(session.errors)
                print(session.state.banner, file=sys.stderr)
                sys.exit(1)
            print(json.dumps(session.completion_summary().to_wire(), indent=2))
        else:
            saved = session.save()
            print(json.dumps({"saved": saved, "progress": session.state.progress.to_wire()}, indent=2))
            if not saved:
                sys.exit(1)
    except ValidationFailed as exc:
        print(json.dumps([e.to_wire() for e in exc.errors], indent=2), file=sys.stderr)
        sys.exit(1)
    finally:
        session.close()


if __name__ == "__main__":
    main()
