"""FastAPI application entry point for the e-invoice upload bridge."""

import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.logging.logging_setup import setup_logging
from shared.helper.HelperConfig import HelperConfig
from shared.clients.invoicing.InvoicingClientInterface import InvoicingClientInterface
from shared.clients.tokenstore.TokenStoreClientInterface import TokenStoreClientInterface
from shared.clients.invoicing.InvoicingClientManager import InvoicingClientManager
from shared.clients.tokenstore.TokenStoreClientManager import TokenStoreClientManager
from services.invoice_upload.UploadService import UploadService
from server.dependencies.auth import load_api_key
from server.dependencies.errors import register_exception_handlers
from server.routers.AuthRouter import router as auth_router
from server.routers.UploadRouter import router as upload_router

logging = setup_logging()
app_version = os.getenv("APP_VERSION", "unknown")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # when the app starts, configuration errors surface here before any request is served
    app.state.logging = logging
    app.state.helper_config = HelperConfig(logger=logging)
    app.state.api_key = load_api_key(app.state.helper_config)

    token_store = TokenStoreClientManager(helper_config=app.state.helper_config).get_client()
    invoicing_client = InvoicingClientManager(helper_config=app.state.helper_config, token_store=token_store).get_client()

    logging.info("Booting all clients...")
    for client in [token_store, invoicing_client]:
        await client.boot()
    logging.info("All clients booted successfully.")

    app.state.token_store = token_store
    app.state.invoicing_client = invoicing_client
    app.state.upload_service = UploadService(
        helper_config=app.state.helper_config,
        invoicing_client=invoicing_client,
    )

    await check_connections(token_store, invoicing_client)

    # while the app is running...
    yield

    # when the app shuts down, close all client connections
    logging.info("Shutting down, closing all clients...")
    for client in [token_store, invoicing_client]:
        await client.close()
    logging.info("All clients closed.")


app = FastAPI(
    title="efacture_bridge",
    description=(
        "Thin service layer in front of an e-invoicing platform. "
        "POST /authenticate stores a platform token, POST /uploads announces files and opens an upload session, "
        "POST /uploads/{id}/content sends the file bytes and POST /uploads/{id}/complete turns the session into a job."
    ),
    version=app_version,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(auth_router)
app.include_router(upload_router)


async def check_connections(
    token_store: TokenStoreClientInterface,
    invoicing_client: InvoicingClientInterface,
) -> None:
    """Check connectivity to both backends on startup.

    Platform failures are non-fatal (uploads will fail later, but the server stays up).
    A token store failure is fatal, no platform call can be made without a token.

    Raises:
        Exception: If the token store is not reachable.
    """
    try:
        result: httpx.Response = await invoicing_client.do_healthcheck()
        reachable = result.status_code < 500
    except httpx.HTTPError as e:
        logging.warning("Invoicing platform healthcheck failed: %s", e)
        reachable = False
    if not reachable:
        logging.warning(
            "Invoicing client '%s' is not reachable. Uploads may fail.",
            invoicing_client.__class__.__name__,
        )

    result = await token_store.do_healthcheck()
    if not result.is_success:
        raise Exception(
            f"Token store client '{token_store.__class__.__name__}' is not reachable "
            f"(status {result.status_code}). Cannot read or store tokens."
        )


if __name__ == "__main__":
    import uvicorn

    logging.info(
        "Starting efacture_bridge API Server v%s from root dir: %s on port 8000...",
        app_version,
        os.environ.get("ROOT_DIR", "unknown"),
    )
    uvicorn.run(app, host="0.0.0.0", port=8000)
