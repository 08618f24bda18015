from shared.helper.HelperConfig import HelperConfig
from shared.clients.invoicing.InvoicingClientInterface import InvoicingClientInterface
from shared.clients.tokenstore.TokenStoreClientInterface import TokenStoreClientInterface
from shared.errors.exceptions import ConfigurationError


class InvoicingClientManager:
    """Manager class to instantiate the configured invoicing platform client."""

    def __init__(self, helper_config: HelperConfig, token_store: TokenStoreClientInterface):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.token_store = token_store
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """Read the invoicing engine name from env configuration.

        Returns:
            str: Capitalised engine name (e.g. "Cecurity").

        Raises:
            ConfigurationError: If INVOICING_ENGINE is set but empty.
        """
        engine = self.helper_config.get_string_val("INVOICING_ENGINE", default="cecurity")
        if not engine.strip():
            raise ConfigurationError("No invoicing engine specified in configuration (INVOICING_ENGINE).")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> InvoicingClientInterface:
        """Instantiate the invoicing client for the configured engine.

        Returns:
            InvoicingClientInterface: The instantiated client, wired to the token store.

        Raises:
            ConfigurationError: If the engine is unsupported or its configuration is invalid.
        """
        engine = self._get_engine_from_env()
        class_name = f"InvoicingClient{engine}"
        try:
            module = __import__(
                f"shared.clients.invoicing.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ConfigurationError("Unsupported invoicing engine '%s'. Error: %s" % (engine, e))
        client = client_class(helper_config=self.helper_config, token_store=self.token_store)
        self.logging.debug("Instantiated invoicing client for engine: %s", engine)
        return client

    def get_client(self) -> InvoicingClientInterface:
        """Return the instantiated invoicing client."""
        return self.client
