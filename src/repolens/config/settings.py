
from typing import Literal, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):

    vector_store: Literal["chroma", "memory"] = "chroma"
    chroma_host: str = "localhost"
    chroma_port: int = 8001
    chroma_collection: str = "repolens_chunks"

    llm_base_url: str = "http://localhost:11434/v1"
    llm_model: str = "qwen2.5-coder:7b"
    llm_api_key: str = "ollama"
    llm_max_tokens: int = 2000
    llm_temperature: float = 0.3
    llm_timeout: float = 120.0
    summary_max_tokens: int = 256
    summary_max_input_chars: int = 10000

    embedding_model: str = "intfloat/e5-base-v2"
    embedding_passage_prefix: str = "passage: "
    embedding_query_prefix: str = "query: "

    # Repository fetching
    github_token: Optional[str] = None
    github_branch: Optional[str] = None
    fetch_max_concurrency: int = 5
    fetch_max_file_bytes: int = 1_000_000

    chunk_size: int = 2000
    index_batch_size: int = 10
    index_concurrency: int = 5

    commit_poll_limit: int = 10
    commit_max_diff_chars: int = 20000
    commit_summary_max_tokens: int = 512

    rag_top_k: int = 15
    rag_fetch_k: int = 30
    rag_vector_threshold: float = 0.3
    rag_per_directory: int = 3
    rag_max_code_chars: int = 3000

    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "REPOLENS_"
        extra = "ignore"


settings = Settings()
