from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    Represents a single configuration parameter required for a env setting.

    Attributes:
        env_key (str): The key/name of the environment variable to read.
        val_type (str): The expected type of the environment variable's value. Supported types are "string", "number" and "bool".
        default (str | int | float | bool | None): An optional default value if the environment variable is not set. If None, the variable is required and an error will be raised if it is not set.
        reject_placeholder (bool): If True, template values such as "your_api_key" or "changeme" are treated as missing.
    """

    env_key: str
    val_type: str
    default: str | int | float | bool | None = None
    reject_placeholder: bool = False
