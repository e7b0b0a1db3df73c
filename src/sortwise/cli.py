"""Command line interface for the sortwise scan store."""

import argparse
import json
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from sortwise.classification.engine import EnsembleDecisionEngine
from sortwise.config.loader import configure_from_cli
from sortwise.config.settings import Settings, set_settings
from sortwise.data.scan_repo import SqliteScanRepository
from sortwise.domain.exceptions import ConfigurationError, SortwiseError
from sortwise.domain.interfaces import StaticIdentity
from sortwise.models.classification import ClassificationInput
from sortwise.runners.batch import BatchImporter
from sortwise.runners.scan import ScanService, normalise_opinion
from sortwise.storage.images import LocalImageStore
from sortwise.utils.logging import setup_logging


def opinion_arg(value: str) -> ClassificationInput:
    """Parse ``LABEL`` or ``LABEL:CONFIDENCE`` (confidence in [0, 1])."""
    label, sep, conf = value.rpartition(":")
    if not sep:
        return ClassificationInput(label=value)
    try:
        confidence = float(conf)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid confidence in {value!r}") from None
    if not 0.0 <= confidence <= 1.0:
        raise argparse.ArgumentTypeError(f"confidence must be within [0, 1]: {value!r}")
    return ClassificationInput(label=label, confidence=confidence)


def _add_opinion_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--human", required=True, help="Label chosen by the user.")
    p.add_argument("--model-a", required=True, type=opinion_arg, metavar="LABEL:CONF",
                   help="Model A prediction, e.g. plastic:0.82")
    p.add_argument("--model-b", required=True, type=opinion_arg, metavar="LABEL:CONF",
                   help="Model B prediction, e.g. metal:0.91")
    p.add_argument("--override-threshold", type=float, metavar="P",
                   help="Mean model confidence above which agreeing models override the human (default: 0.88).")


def _add_store_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--db", help="Path to the scan SQLite DB. If omitted, a per-user default is used.")
    p.add_argument("--owner", default=os.environ.get("SORTWISE_OWNER"),
                   help="Owner id of the scans (default: $SORTWISE_OWNER).")
    p.add_argument("--wal", action="store_true", help="Open the database in WAL mode.")


def _add_debug_args(p: argparse.ArgumentParser) -> None:
    debug_group = p.add_argument_group("Debug Options")
    debug_group.add_argument("--debug", action="store_true", help="Enable debug mode with verbose logging.")
    debug_group.add_argument("--log-dir", metavar="PATH", help="Also write logs to a timestamped file in PATH.")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the sortwise CLI."""
    parser = argparse.ArgumentParser(
        prog="sortwise",
        description="Reconcile human and model waste labels and report on stored scans.",
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    decide_p = sub.add_parser("decide", help="Print the ensemble decision for one scan (nothing is stored).")
    _add_opinion_args(decide_p)
    _add_debug_args(decide_p)

    record_p = sub.add_parser("record", help="Decide and store one scan.")
    _add_opinion_args(record_p)
    _add_store_args(record_p)
    record_p.add_argument("--image", metavar="PATH", help="Image file to store with the scan.")
    record_p.add_argument("--image-root", help="Directory for stored images (default: per-user data dir).")
    record_p.add_argument("--use-feedback", action="store_true",
                          help="Weight model opinions by their accuracy in stored feedback.")
    _add_debug_args(record_p)

    report_p = sub.add_parser("report", help="Print statistics over an owner's stored scans.")
    _add_store_args(report_p)
    report_p.add_argument("--dashboard", action="store_true",
                          help="Include kappa, calibration, per-category and timeline metrics.")
    report_p.add_argument("--top-k", type=int, metavar="K", help="Labels listed per classifier (default: 5).")
    report_p.add_argument("--days", type=int, metavar="N", help="Days shown in the dashboard timeline (default: 14).")
    _add_debug_args(report_p)

    feedback_p = sub.add_parser("feedback", help="Record whether a stored scan was classified correctly.")
    _add_store_args(feedback_p)
    feedback_p.add_argument("scan_id", type=int, help="Id of the stored scan.")
    verdict = feedback_p.add_mutually_exclusive_group(required=True)
    verdict.add_argument("--correct", dest="was_correct", action="store_true")
    verdict.add_argument("--incorrect", dest="was_correct", action="store_false")
    feedback_p.add_argument("--model", default="model_b", choices=["model_a", "model_b"],
                            help="Which model the verdict is about (default: model_b).")
    feedback_p.add_argument("--category", help="Category the verdict applies to (default: the scan's final label).")
    _add_debug_args(feedback_p)

    import_p = sub.add_parser("import", help="Decide and store scans from a JSON Lines file.")
    import_p.add_argument("input", help="JSON Lines file, one scan event per line.")
    _add_store_args(import_p)
    import_p.add_argument("--chunk-size", type=int, metavar="N", help="Scans written per transaction (default: 500).")
    import_p.add_argument("--no-progress", action="store_true", help="Hide the progress bar.")
    import_p.add_argument("--use-feedback", action="store_true",
                          help="Weight model opinions by their accuracy in stored feedback.")
    import_p.add_argument("--dry-run", action="store_true", help="Validate configuration and exit.")
    _add_debug_args(import_p)

    return parser


def _emit(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


def _open_service(settings: Settings) -> ScanService:
    repo = SqliteScanRepository.open(str(settings.database.path), use_wal=settings.database.use_wal)
    image_store = LocalImageStore(settings.storage.image_root) if settings.storage.image_root else None
    identity = StaticIdentity(settings.owner_id) if settings.owner_id else None
    return ScanService(
        repo,
        image_store=image_store,
        identity=identity,
        thresholds=settings.ensemble.thresholds,
        use_feedback_accuracy=settings.ensemble.use_feedback_accuracy,
        points_per_scan=settings.report.points_per_scan,
    )


def _cmd_decide(args, settings: Settings) -> int:
    engine = EnsembleDecisionEngine(settings.ensemble.thresholds)
    result = engine.decide(
        normalise_opinion(args.human),
        normalise_opinion(args.model_a),
        normalise_opinion(args.model_b),
    )
    payload = result.to_dict()
    payload["explanation"] = result.explanation
    _emit(payload)
    return 0


def _cmd_record(args, settings: Settings) -> int:
    service = _open_service(settings)
    try:
        image = Path(args.image).read_bytes() if args.image else None
        record = service.submit(image, args.human, args.model_a, args.model_b)
    finally:
        service.repository.close()
    _emit(record.to_dict())
    return 0


def _cmd_report(args, settings: Settings) -> int:
    service = _open_service(settings)
    try:
        if args.dashboard:
            _emit(service.dashboard(top_k=settings.report.top_k, timeline_days=settings.report.timeline_days))
        else:
            _emit(service.report(top_k=settings.report.top_k).to_dict())
    finally:
        service.repository.close()
    return 0


def _cmd_feedback(args, settings: Settings) -> int:
    service = _open_service(settings)
    try:
        fb = service.record_feedback(args.scan_id, args.was_correct, model_type=args.model, category=args.category)
    finally:
        service.repository.close()
    _emit({
        "feedback_id": fb.feedback_id,
        "scan_id": fb.scan_id,
        "was_correct": fb.was_correct,
        "category": fb.category,
        "model_type": fb.model_type.value,
    })
    return 0


def _cmd_import(args, settings: Settings, summary_logger: logging.Logger) -> int:
    if settings.dry_run:
        _emit({"dry_run": True, "input": args.input, **settings.to_dict()})
        return 0
    service = _open_service(settings)
    try:
        importer = BatchImporter(
            service,
            chunk_size=settings.database.chunk_size,
            show_progress=False if args.no_progress else None,
            default_owner=settings.owner_id,
        )
        res = importer.run(args.input)
    finally:
        service.repository.close()
    summary_logger.info("Imported %d scans (%d skipped) in %.2f s", res.stored, res.skipped, res.processing_time)
    _emit({
        "source": res.source,
        "lines_read": res.lines_read,
        "stored": res.stored,
        "skipped": res.skipped,
        "ambiguous": res.ambiguous,
        "reason_counts": res.reason_counts,
        "errors": res.errors,
    })
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the sortwise CLI."""
    args = build_parser().parse_args(argv)
    debug = getattr(args, "debug", False)

    try:
        settings = configure_from_cli(args)
        set_settings(settings)

        logger, summary_logger = setup_logging(
            log_dir=str(settings.logging.log_dir) if settings.logging.log_dir else None,
            console=settings.logging.console_output,
            level="DEBUG" if settings.debug_mode else "WARNING",
        )
        if settings.debug_mode:
            for section, values in settings.to_dict().items():
                logger.debug("  %s: %s", section, values)

        if args.cmd == "decide":
            code = _cmd_decide(args, settings)
        elif args.cmd == "record":
            code = _cmd_record(args, settings)
        elif args.cmd == "report":
            code = _cmd_report(args, settings)
        elif args.cmd == "feedback":
            code = _cmd_feedback(args, settings)
        elif args.cmd == "import":
            code = _cmd_import(args, settings, summary_logger)
        else:
            logging.error("Unknown command: %s", args.cmd)
            code = 2
        sys.exit(code)

    except ConfigurationError as e:
        logging.error("Configuration error: %s", e.message)
        for suggestion in e.suggestions:
            logging.error("  - %s", suggestion)
        sys.exit(1)

    except SortwiseError as e:
        logging.error("%s", e.message)
        for suggestion in e.suggestions:
            logging.error("  - %s", suggestion)
        sys.exit(1)

    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        sys.exit(130)

    except Exception as e:
        logging.error("sortwise %s failed: %s", args.cmd, e)
        if debug:
            logging.exception("Full traceback:")
        sys.exit(1)


if __name__ == "__main__":
    main()
