"""Configuration from environment variables (.env)."""

import os
from pathlib import Path
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

ALL_SOURCES = ("wikipedia", "brave", "duckduckgo", "google")


@dataclass
class Config:
    project_root: Path
    data_dir: Path
    logs_dir: Path
    quota_file: Path
    google_monthly_limit: int
    embedding_dimension: int
    embedding_cache_ttl_seconds: float
    embedding_cache_max_entries: int  # 0 = unbounded
    search_timeout_seconds: float
    wikipedia_api_url: str
    wikipedia_result_limit: int
    enabled_sources: list[str]
    max_results: int  # 0 = no cap

    @classmethod
    def load(cls) -> "Config":
        project_root = Path(__file__).parent.parent.parent
        data_dir = Path(os.getenv("METASEARCH_DATA_DIR", str(project_root / "data")))
        quota_file = os.getenv("METASEARCH_QUOTA_FILE", "")
        return cls(
            project_root=project_root,
            data_dir=data_dir,
            logs_dir=Path(os.getenv("METASEARCH_LOGS_DIR", str(project_root / "logs"))),
            quota_file=Path(quota_file) if quota_file else data_dir / "search_usage.json",
            google_monthly_limit=int(os.getenv("GOOGLE_MONTHLY_LIMIT", "100")),
            embedding_dimension=int(os.getenv("EMBEDDING_DIMENSION", "384")),
            embedding_cache_ttl_seconds=float(os.getenv("EMBEDDING_CACHE_TTL_HOURS", "24")) * 3600,
            embedding_cache_max_entries=int(os.getenv("EMBEDDING_CACHE_MAX_ENTRIES", "0")),
            search_timeout_seconds=float(os.getenv("SEARCH_TIMEOUT_SECONDS", "10")),
            wikipedia_api_url=os.getenv("WIKIPEDIA_API_URL", "https://en.wikipedia.org/w/api.php"),
            wikipedia_result_limit=int(os.getenv("WIKIPEDIA_RESULT_LIMIT", "5")),
            enabled_sources=[
                s.strip().lower()
                for s in os.getenv("METASEARCH_SOURCES", ",".join(ALL_SOURCES)).split(",")
                if s.strip()
            ],
            max_results=int(os.getenv("METASEARCH_MAX_RESULTS", "20")),
        )

    def validate(self) -> list[str]:
        errors = []
        if self.google_monthly_limit < 0:
            errors.append(f"GOOGLE_MONTHLY_LIMIT must be >= 0, got {self.google_monthly_limit}")
        if self.embedding_dimension <= 0:
            errors.append(f"EMBEDDING_DIMENSION must be positive, got {self.embedding_dimension}")
        if self.embedding_cache_ttl_seconds <= 0:
            errors.append("EMBEDDING_CACHE_TTL_HOURS must be positive")
        if self.search_timeout_seconds <= 0:
            errors.append("SEARCH_TIMEOUT_SECONDS must be positive")
        if self.max_results < 0:
            errors.append(f"METASEARCH_MAX_RESULTS must be >= 0, got {self.max_results}")
        unknown = [s for s in self.enabled_sources if s not in ALL_SOURCES]
        if unknown:
            errors.append(f"Unknown sources in METASEARCH_SOURCES: {', '.join(unknown)}")
        return errors


config = Config.load()
