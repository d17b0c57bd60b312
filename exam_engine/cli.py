import argparse
import json
import logging
import sys

from exam_engine.core.config import settings
from exam_engine.core.database import SessionLocal, init_db
from exam_engine.core.errors import ExamEngineError
from exam_engine.services import composer, presenter, scoring


def _emit(obj) -> None:
    print(json.dumps(obj, indent=2, default=str))


def run(args) -> int:
    if args.command == "init-db":
        init_db()
        _emit({"ok": True})
        return 0
    db = SessionLocal()
    try:
        if args.command == "compose":
            c = composer.compose_exam(db, args.course_id)
            _emit({"exam_id": c.exam_id, "course_id": c.course_id, "question_ids": c.question_ids})
        elif args.command == "present":
            _emit(presenter.group_by_question(presenter.present_exam(db, args.exam_id)))
        elif args.command == "results":
            _emit(scoring.compute_results(db, args.student_id, args.exam_id).to_dict())
        return 0
    except ExamEngineError as e:
        _emit({"error": e.to_dict()})
        return 1
    finally:
        db.close()


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(prog="exam-engine")
    ap.add_argument("--log-level", default=settings.LOG_LEVEL)
    sub = ap.add_subparsers(dest="command", required=True)
    sub.add_parser("init-db")
    p = sub.add_parser("compose")
    p.add_argument("--course-id", "--course", dest="course_id", type=int, required=True)
    p = sub.add_parser("present")
    p.add_argument("--exam-id", "--exam", dest="exam_id", type=int, required=True)
    p = sub.add_parser("results")
    p.add_argument("--student-id", "--student", dest="student_id", type=int, required=True)
    p.add_argument("--exam-id", "--exam", dest="exam_id", type=int, required=True)
    args = ap.parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.INFO), stream=sys.stderr)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
