from pydantic import BaseModel
import os

from mission_remote.models import Host


class Settings(BaseModel):
    transmission_name: str = "default"
    transmission_host: str | None = None
    transmission_port: int = 9091
    transmission_ssl: bool = False
    transmission_username: str | None = None
    # Secret supplied from outside (env or a secret store); never written back
    transmission_password: str | None = None
    poll_interval: float = 5.0
    poll_max_failures: int = 3
    request_timeout: float = 10.0
    log_level: str = "INFO"

    def host(self) -> Host:
        return Host(
            name=self.transmission_name,
            server=self.transmission_host,
            port=self.transmission_port,
            ssl=self.transmission_ssl,
            username=self.transmission_username,
        )


def load_settings() -> Settings:
    # Simple env loader; .env file is honoured if present
    from dotenv import load_dotenv
    load_dotenv()
    return Settings(
        transmission_name=os.getenv("TRANSMISSION_NAME", "default"),
        transmission_host=os.getenv("TRANSMISSION_HOST"),
        transmission_port=int(os.getenv("TRANSMISSION_PORT", "9091")),
        transmission_ssl=os.getenv("TRANSMISSION_SSL", "false").lower() == "true",
        transmission_username=os.getenv("TRANSMISSION_USERNAME"),
        transmission_password=os.getenv("TRANSMISSION_PASSWORD"),
        poll_interval=float(os.getenv("POLL_INTERVAL", "5")),
        poll_max_failures=int(os.getenv("POLL_MAX_FAILURES", "3")),
        request_timeout=float(os.getenv("REQUEST_TIMEOUT", "10")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
