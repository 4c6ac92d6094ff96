import argparse
import json
import mimetypes
import sys
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from types import TracebackType

from intake.config.settings import Settings
from intake.database.connection import Database
from intake.database.repositories.documents_repository import PostgresDocumentsRepository
from intake.database.schema import create_schema
from intake.documents.exceptions import DocumentNotFoundError, IntakeError, ValidationError
from intake.documents.models import DeleteResult, DocumentStatus
from intake.ingestion import RawFile, build_orchestrator
from intake.logging.logger import Log
from intake.notification.factory import NotifierFactory
from intake.query.list_service import DocumentQueryService
from intake.storage.factory import BlobStoreFactory

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INVALID = 2


class Application:
    """Composition root: builds every collaborator and owns their lifecycle."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.database = Database.from_settings(settings)
        self.blob_store = BlobStoreFactory.create(settings)
        self.dispatcher = NotifierFactory.create(settings)
        self.documents = PostgresDocumentsRepository(self.database, self.blob_store)
        self.orchestrator = build_orchestrator(
            settings, self.documents, self.blob_store, self.dispatcher
        )
        self.queries = DocumentQueryService(self.documents)

    def __enter__(self) -> "Application":
        self.database.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self.dispatcher is not None:
            self.dispatcher.shutdown(wait=True)
        self.database.close()


def _print_json(value: object) -> None:
    print(json.dumps(value, indent=2, ensure_ascii=False))


def _read_raw_file(path: Path, max_size_bytes: int) -> RawFile:
    """Load one CLI argument; unreadable or oversized files come back without data.

    Oversized files are never read; their on-disk size is passed as
    ``declared_size`` so validation rejects them per file.
    """
    content_type, _ = mimetypes.guess_type(path.name)
    raw_file = RawFile(
        data=None,
        original_name=path.name,
        content_type=content_type or "application/octet-stream",
    )
    try:
        size = path.stat().st_size
        if size > max_size_bytes:
            return replace(raw_file, declared_size=size)
        return replace(raw_file, data=path.read_bytes())
    except OSError as exc:
        Log.warning(f"Cannot read file: {exc}", path=str(path))
        return raw_file


def _cmd_init_db(app: Application, _args: argparse.Namespace) -> int:
    create_schema(app.database)
    Log.info("Schema ready")
    return EXIT_OK


def _cmd_ingest(app: Application, args: argparse.Namespace) -> int:
    max_size = app.settings.max_upload_size_bytes
    raw_files = [_read_raw_file(Path(p), max_size) for p in args.files]
    outcomes = app.orchestrator.ingest_many(raw_files, args.owner)
    _print_json([outcome.to_dict() for outcome in outcomes])
    return EXIT_OK if all(outcome.ok for outcome in outcomes) else EXIT_FAILED


def _cmd_get(app: Application, args: argparse.Namespace) -> int:
    document = app.queries.get_document(args.document_id)
    if document is None:
        _print_json({"error": "NotFound", "id": args.document_id})
        return EXIT_FAILED
    _print_json(document.to_dict())
    return EXIT_OK


def _cmd_list(app: Application, args: argparse.Namespace) -> int:
    options = {
        "owner_id": args.owner,
        "status": args.status,
        "query": args.query,
        "sort": args.sort,
    }
    documents = app.queries.list_documents(options)
    _print_json([document.to_dict() for document in documents])
    return EXIT_OK


def _cmd_delete(app: Application, args: argparse.Namespace) -> int:
    result = app.queries.delete_document(args.document_id)
    _print_json({"id": args.document_id, "result": result.value})
    return EXIT_OK if result is DeleteResult.DELETED else EXIT_FAILED


def _cmd_set_status(app: Application, args: argparse.Namespace) -> int:
    try:
        status = DocumentStatus(args.status.lower())
    except ValueError:
        raise ValidationError(f"Unknown status '{args.status}'") from None
    try:
        document = app.documents.update_status(args.document_id, status)
    except DocumentNotFoundError as exc:
        _print_json({"error": "NotFound", "message": str(exc)})
        return EXIT_FAILED
    _print_json(document.to_dict())
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="intake",
        description="Upload documents and hand them to the processing pipeline.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    init_db = sub.add_parser("init-db", help="create the documents table")
    init_db.set_defaults(handler=_cmd_init_db)

    ingest = sub.add_parser("ingest", help="upload one or more files")
    ingest.add_argument("--owner", required=True, help="id of the owning user")
    ingest.add_argument("files", nargs="+", help="paths of the files to upload")
    ingest.set_defaults(handler=_cmd_ingest)

    get = sub.add_parser("get", help="show one document")
    get.add_argument("document_id")
    get.set_defaults(handler=_cmd_get)

    list_cmd = sub.add_parser("list", help="list documents")
    list_cmd.add_argument("--owner")
    list_cmd.add_argument("--status")
    list_cmd.add_argument("--query", help="case-insensitive substring of the file name")
    list_cmd.add_argument("--sort", help="uploaded_desc, uploaded_asc, name_asc or name_desc")
    list_cmd.set_defaults(handler=_cmd_list)

    delete = sub.add_parser("delete", help="delete a document and its blob")
    delete.add_argument("document_id")
    delete.set_defaults(handler=_cmd_delete)

    set_status = sub.add_parser("set-status", help="advance a document's status")
    set_status.add_argument("document_id")
    set_status.add_argument("status")
    set_status.set_defaults(handler=_cmd_set_status)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point: load settings -> build application -> run one command -> tear down."""
    args = build_parser().parse_args(argv)
    settings = Settings()
    Log.configure(settings.log_level)

    try:
        with Application(settings) as app:
            return args.handler(app, args)
    except ValidationError as exc:
        Log.error(f"Invalid request: {exc}")
        return EXIT_INVALID
    except IntakeError as exc:
        Log.error(f"Command failed: {exc}")
        return EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
