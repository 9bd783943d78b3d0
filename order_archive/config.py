import os
from dataclasses import dataclass

@dataclass(frozen=True)
class Settings:
    endpoint: str = ""
    access_key: str = ""
    data_path: str = "order_archive_data.json"
    # Password given to the Root Architect when it has to be created
    root_password: str = ""

    @property
    def remote(self) -> bool:
        return bool(self.endpoint and self.access_key)

def load_settings() -> Settings:
    return Settings(
        endpoint=os.getenv("ORDER_ARCHIVE_URL", "").strip(),
        access_key=os.getenv("ORDER_ARCHIVE_KEY", "").strip(),
        data_path=os.getenv("ORDER_ARCHIVE_DATA", "").strip() or "order_archive_data.json",
        root_password=os.getenv("ORDER_ARCHIVE_ROOT_PASSWORD", ""),
    )
