"""Upload runner entry point.

Authenticates (optional) and pushes local invoice files through one upload workflow.

Usage:
    python -m services.invoice_upload.upload_runner --login LOGIN --password PASSWORD [--complete] FILE [FILE ...]
"""

import argparse
import asyncio
import mimetypes
import sys
from pathlib import Path

import httpx

from services.invoice_upload.UploadWorkflow import UploadWorkflow
from shared.clients.invoicing.InvoicingClientManager import InvoicingClientManager
from shared.clients.invoicing.models.Upload import UploadFile
from shared.clients.tokenstore.TokenStoreClientManager import TokenStoreClientManager
from shared.errors.exceptions import EfactureError
from shared.helper.HelperConfig import HelperConfig, load_env_file
from shared.logging.logging_setup import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Upload e-invoice files to the invoicing platform.")
    parser.add_argument("files", nargs="+", type=Path, help="Files to upload.")
    parser.add_argument("--login", help="Authenticate with this login before uploading.")
    parser.add_argument("--password", help="Password for --login.")
    parser.add_argument("--complete", action="store_true", help="Complete the upload session into a processing job.")
    parser.add_argument("--env-file", help="Optional .env file to load.")
    args = parser.parse_args(argv)
    if bool(args.login) != bool(args.password):
        parser.error("--login and --password must be given together.")
    return args


def read_files(paths: list[Path]) -> list[UploadFile]:
    """Load the selected files from disk.

    Raises:
        FileNotFoundError: If a path does not point to a file.
    """
    files = []
    for path in paths:
        if not path.is_file():
            raise FileNotFoundError(f"Not a file: {path}")
        content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        files.append(UploadFile(file_name=path.name, content=path.read_bytes(), content_type=content_type))
    return files


async def main(argv: list[str] | None = None) -> int:
    """Run one upload workflow. Returns the process exit code."""
    args = parse_args(argv)
    # LOG_LEVEL, TIMEZONE and ROOT_DIR may come from the env file
    load_env_file(args.env_file)
    logger = setup_logging()
    config = HelperConfig(logger=logger, env_file=args.env_file)

    try:
        token_store = TokenStoreClientManager(helper_config=config).get_client()
        invoicing_client = InvoicingClientManager(helper_config=config, token_store=token_store).get_client()
        files = read_files(args.files)
    except (EfactureError, OSError) as e:
        logger.error("Cannot start upload: %s", e)
        return 2

    try:
        await token_store.boot()
        await invoicing_client.boot()

        if args.login:
            result = await invoicing_client.do_authenticate(args.login, args.password)
            logger.info("Logged in as %s.", result.displayName or args.login, color="cyan")

        workflow = UploadWorkflow(
            helper_config=config,
            invoicing_client=invoicing_client,
            subscription_id=invoicing_client.get_subscription_id(),
        )
        workflow.select_files(files)
        upload_id = await workflow.create_session()
        await workflow.upload_content()
        logger.info("Files uploaded successfully. Upload ID: %s", upload_id, color="green")

        if args.complete:
            job_id = await workflow.complete()
            logger.info("Upload completed. Job ID: %s", job_id, color="green")
        return 0
    except (EfactureError, httpx.HTTPError) as e:
        logger.error("Upload failed: %s", e)
        return 1
    finally:
        await invoicing_client.close()
        await token_store.close()


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
