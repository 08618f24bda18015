from shared.helper.HelperConfig import HelperConfig
from shared.clients.tokenstore.TokenStoreClientInterface import TokenStoreClientInterface
from shared.errors.exceptions import ConfigurationError


class TokenStoreClientManager:
    """Manager class to instantiate the configured token store client."""

    def __init__(self, helper_config: HelperConfig):
        self.helper_config = helper_config
        self.logging = helper_config.get_logger()
        self.client = self._initialize_client()

    def _get_engine_from_env(self) -> str:
        """Read the token store engine name from env configuration.

        Returns:
            str: Capitalised engine name (e.g. "Supabase").

        Raises:
            ConfigurationError: If TOKENSTORE_ENGINE is not set or empty.
        """
        engine = self.helper_config.get_string_val("TOKENSTORE_ENGINE", default="supabase")
        if not engine.strip():
            raise ConfigurationError("No token store engine specified in configuration (TOKENSTORE_ENGINE).")
        return engine.strip().lower().capitalize()

    def _initialize_client(self) -> TokenStoreClientInterface:
        """Instantiate the token store client for the configured engine.

        Returns:
            TokenStoreClientInterface: The instantiated client.

        Raises:
            ConfigurationError: If the engine is unsupported or its configuration is invalid.
        """
        engine = self._get_engine_from_env()
        class_name = f"TokenStoreClient{engine}"
        try:
            module = __import__(
                f"shared.clients.tokenstore.{engine.lower()}.{class_name}",
                fromlist=[class_name],
            )
            client_class = getattr(module, class_name)
        except (ImportError, AttributeError) as e:
            raise ConfigurationError("Unsupported token store engine '%s'. Error: %s" % (engine, e))
        client = client_class(helper_config=self.helper_config)
        self.logging.debug("Instantiated token store client for engine: %s", engine)
        return client

    def get_client(self) -> TokenStoreClientInterface:
        """Return the instantiated token store client."""
        return self.client
