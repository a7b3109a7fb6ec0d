import os

DEFAULT_RESULTS_DIR = "results"


class ConfigurationError(ValueError):
    """Raised when a scenario is defined with values the run cannot use."""


class Settings:
    """Target and credentials, frozen when the locustfile is imported."""

    def __init__(self, base_url, token="", results_dir=DEFAULT_RESULTS_DIR):
        if not base_url.startswith(("http://", "https://")):
            raise ConfigurationError("base URL must start with http:// or https://, got {!r}".format(base_url))
        self.base_url = base_url.rstrip("/")
        self.token = token or ""
        self.results_dir = results_dir

    @classmethod
    def from_env(cls, url_var, default_url, environ=None):
        environ = os.environ if environ is None else environ
        return cls(
            base_url=environ.get(url_var) or default_url,
            token=environ.get("API_TOKEN", ""),
            results_dir=environ.get("RESULTS_DIR", DEFAULT_RESULTS_DIR),
        )

    def auth_headers(self):
        if not self.token:
            return {}
        return {"Authorization": "Bearer {}".format(self.token)}

    def __repr__(self):
        # never print the token itself
        return "Settings(base_url={!r}, token={})".format(self.base_url, "set" if self.token else "unset")
