
import asyncio
import logging
import sys
import time

import httpx

from ..config.settings import settings
from ..container import configure_container, container
from ..core.protocols.vector_store import VectorStoreProtocol
from ..core.services.answer_service import AnswerService
from ..core.services.commit_service import CommitService
from ..core.services.index_service import IndexService
from ..exceptions import GenerationError, RepoLensError

logger = logging.getLogger(__name__)

USAGE = """Usage: repolens <command> [args]
Commands:
  index <project_id> <repo_ref> [--replace]   Index a repository into a project
  estimate <repo_ref>                          Count fragments (credits) for a repository
  ask <project_id> <question...>               Ask a question about a project
  commits <project_id> <repo_ref>              Summarize recent commits
  delete <project_id>                          Delete a project's chunks
  check                                        Wait for the LLM endpoint"""


def check_llm_available(attempts: int = 30) -> bool:
    """Wait for the OpenAI-compatible endpoint to list the configured model.

    Returns:
        True if model ready, False otherwise.
    """
    model = settings.llm_model
    headers = {"Authorization": f"Bearer {settings.llm_api_key}"}

    logger.info(f"Checking LLM model: {model}")

    for attempt in range(attempts):
        try:
            resp = httpx.get(f"{settings.llm_base_url}/models", headers=headers, timeout=5)
            if resp.status_code == 200:
                models = [m["id"] for m in resp.json().get("data", [])]
                if any(model in m for m in models):
                    logger.info(f"Model {model} is ready")
                    return True
                logger.error(f"Model {model} not served (available: {', '.join(models)})")
                return False
            logger.info(f"LLM endpoint returned {resp.status_code}")
        except httpx.HTTPError:
            logger.info(f"Waiting for LLM endpoint... ({attempt + 1}/{attempts})")
        time.sleep(2)

    logger.error("LLM endpoint not available")
    return False


async def cmd_index(project_id: str, repo_ref: str, replace: bool = False) -> None:
    """Index command - fetch, chunk, summarize, embed, store."""
    index_service = container.resolve(IndexService)
    report = await index_service.index(project_id, repo_ref, replace=replace)
    print(
        f"Indexed {report.success_count} chunks "
        f"({report.error_count} errors, {report.fragment_count} fragments "
        f"from {report.file_count} files)"
    )


async def cmd_estimate(repo_ref: str) -> None:
    """Estimate command - credit quote for a repository."""
    index_service = container.resolve(IndexService)
    total = await index_service.estimate_cost(repo_ref)
    print(f"{total} credits")


async def cmd_ask(project_id: str, question: str) -> None:
    """Ask command - stream an answer, then list sources."""
    answer_service = container.resolve(AnswerService)
    result = await answer_service.answer(question, project_id)

    try:
        async for token in result.stream:
            sys.stdout.write(token)
            sys.stdout.flush()
    except GenerationError as e:
        print(f"\n[answer interrupted: {e}]")
    print()

    if result.cited_fragments:
        print("\nSources:")
        for r in result.cited_fragments:
            print(f"  {r.file_name} ({r.similarity * 100:.1f}%)")


async def cmd_commits(project_id: str, repo_ref: str) -> None:
    """Commits command - summarize recent commits."""
    commit_service = container.resolve(CommitService)
    commits = await commit_service.poll(project_id, repo_ref)

    for c in commits:
        print(f"{c.hash[:7]}  {c.date:%Y-%m-%d}  {c.author_name}: {c.title}")
        print(c.summary or "  (no summary)")
        print()


def cmd_delete(project_id: str) -> None:
    """Delete command - remove a project's chunks."""
    store = container.resolve(VectorStoreProtocol)
    deleted = store.delete_project(project_id)
    print(f"Deleted {deleted} chunks")


def main():
    """CLI entry point."""
    logging.basicConfig(level=settings.log_level, format="%(message)s")

    args = sys.argv[1:]
    if not args:
        print(USAGE)
        sys.exit(1)

    command, rest = args[0], args[1:]
    flags = {a for a in rest if a.startswith("--")}
    positional = [a for a in rest if not a.startswith("--")]

    if command == "check":
        sys.exit(0 if check_llm_available() else 1)

    configure_container(settings)

    try:
        if command == "index" and len(positional) == 2:
            asyncio.run(cmd_index(*positional, replace="--replace" in flags))
        elif command == "estimate" and len(positional) == 1:
            asyncio.run(cmd_estimate(positional[0]))
        elif command == "ask" and len(positional) >= 2:
            asyncio.run(cmd_ask(positional[0], " ".join(positional[1:])))
        elif command == "commits" and len(positional) == 2:
            asyncio.run(cmd_commits(*positional))
        elif command == "delete" and len(positional) == 1:
            cmd_delete(positional[0])
        else:
            print(f"Unknown command or wrong arguments: {' '.join(args)}")
            print(USAGE)
            sys.exit(1)
    except RepoLensError as e:
        logger.error(f"{type(e).__name__}: {e}")
        sys.exit(2)


if __name__ == "__main__":
    main()
