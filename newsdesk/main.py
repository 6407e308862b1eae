"""Application entrypoint for newsdesk.

Modes:
1) browse a section in the terminal UI (default)
2) read one article and print it as markdown (``--read URL``)
3) run or manage the background fetch daemon (``--serve``, ``--status``, ``--stop``)
"""

from __future__ import annotations

import argparse
import sys
from datetime import timedelta
from typing import List, Optional

from dotenv import load_dotenv

from .daemon import DaemonClient, run_daemon
from .daemon.client import default_serve_command
from .errors import UserError, describe_error
from .fetchers import FetchSession, create_source
from .models import Article
from .orchestrator import FetchOrchestrator
from .storage import ArticleCache
from .ui.theme import color_disabled
from .utils.app_config import AppConfig
from .utils.config_loader import UserConfig, load_user_config
from .utils.logging import configure_logging, get_logger

logger = get_logger("nd.main")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="newsdesk",
        description="Browse and read news sections in the terminal",
    )
    parser.add_argument(
        "--section",
        default=None,
        help="Section to open (alias such as 'leaders', 'business', 'finance'; default from config)",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Use built-in offline fixtures instead of live feeds",
    )
    parser.add_argument(
        "--read",
        metavar="URL",
        default=None,
        help="Fetch one article and print it as markdown",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the fetch daemon in the foreground",
    )
    parser.add_argument(
        "--status",
        action="store_true",
        help="Report whether the fetch daemon is running",
    )
    parser.add_argument(
        "--stop",
        action="store_true",
        help="Ask a running fetch daemon to shut down",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Bypass the article cache, keep page HTML and log the fetch path",
    )
    parser.add_argument(
        "--no-color",
        action="store_true",
        help="Disable colors",
    )
    parser.add_argument(
        "--config-dir",
        default=None,
        help="Directory for config.yaml, cache, daemon socket and logs",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def build_daemon_client(app_cfg: AppConfig) -> DaemonClient:
    return DaemonClient(
        app_cfg.socket_path,
        log_path=app_cfg.daemon_log_path,
        serve_command=default_serve_command() + ["--config-dir", str(app_cfg.home_dir)],
    )


def build_orchestrator(app_cfg: AppConfig, user_cfg: UserConfig, *, debug: bool = False) -> FetchOrchestrator:
    def direct_fetch(url: str, debug_flag: bool) -> Article:
        with FetchSession(cookies=user_cfg.cookies, timeout=app_cfg.fetch_timeout) as session:
            return session.fetch(url, debug=debug_flag)

    return FetchOrchestrator(
        cache=ArticleCache(app_cfg.cache_dir, ttl=timedelta(seconds=app_cfg.cache_ttl_seconds)),
        daemon=build_daemon_client(app_cfg),
        direct_fetch=direct_fetch,
        debug=debug,
        fetch_timeout=app_cfg.fetch_timeout,
        ready_timeout=app_cfg.ready_timeout,
    )


def _serve(app_cfg: AppConfig, user_cfg: UserConfig) -> int:
    if not user_cfg.is_logged_in:
        logger.info("No cookies configured; fetching anonymously")
    session = FetchSession(cookies=user_cfg.cookies, timeout=app_cfg.fetch_timeout)
    run_daemon(app_cfg.socket_path, session)
    return 0


def _status(app_cfg: AppConfig) -> int:
    latency, running = build_daemon_client(app_cfg).status()
    if running:
        print(f"running ({latency * 1000:.1f}ms)")
    else:
        print("not running")
    return 0


def _stop(app_cfg: AppConfig) -> int:
    client = build_daemon_client(app_cfg)
    if not client.is_running():
        print("not running")
        return 0
    client.shutdown()
    print("stopped")
    return 0


def _read(app_cfg: AppConfig, user_cfg: UserConfig, url: str, debug: bool) -> int:
    article = build_orchestrator(app_cfg, user_cfg, debug=debug).fetch_article(url)
    sys.stdout.write(article.to_markdown())
    if article.debug_artifact_path:
        print(f"\ndebug: page HTML saved to {article.debug_artifact_path}", file=sys.stderr)
    return 0


def _browse(app_cfg: AppConfig, user_cfg: UserConfig, args: argparse.Namespace) -> int:
    if not (sys.stdin.isatty() and sys.stdout.isatty()):
        raise UserError("browse needs an interactive terminal - use --read URL in scripts")

    from .browse.app import run_browser  # lazy import: curses is only needed here

    if args.demo:
        source = create_source(demo=True)
    else:
        orchestrator = build_orchestrator(app_cfg, user_cfg, debug=args.debug)
        try:
            if orchestrator.ensure_daemon():
                logger.info("Started fetch daemon in the background")
        except OSError as exc:
            logger.warning("Could not start fetch daemon: %s", exc)
        source = create_source(
            orchestrator=orchestrator,
            feed_url_template=user_cfg.feed_url_template,
            max_items=app_cfg.max_items,
        )

    run_browser(
        source,
        sections=user_cfg.sections,
        section=args.section or user_cfg.default_section,
        debug=args.debug,
        no_color=args.no_color or color_disabled(),
    )
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv(override=False)
    args = parse_args(argv)

    app_cfg = AppConfig()
    if args.config_dir:
        app_cfg.home = args.config_dir

    level = "DEBUG" if args.debug else args.log_level
    if args.serve:
        configure_logging(level=level, output="stdout")
    else:
        configure_logging(level=level, file_path=str(app_cfg.log_path))

    try:
        user_cfg = load_user_config(app_cfg.user_config_path)
        if args.serve:
            return _serve(app_cfg, user_cfg)
        if args.status:
            return _status(app_cfg)
        if args.stop:
            return _stop(app_cfg)
        if args.read:
            return _read(app_cfg, user_cfg, args.read, args.debug)
        return _browse(app_cfg, user_cfg, args)
    except UserError as exc:
        logger.info("User error: %s", exc)
        print(describe_error(exc), file=sys.stderr)
        return 1
    except Exception as exc:  # noqa: BLE001 - top-level entrypoint guard
        logger.exception("Failed: %s", exc)
        print(describe_error(exc), file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover - script entrypoint
    raise SystemExit(main())
