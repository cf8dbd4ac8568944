"""Entry point: uv run run.py scenario.txt"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Ensure src/ is on the path for direct execution
sys.path.insert(0, str(Path(__file__).parent / "src"))

from dotenv import load_dotenv


async def main(
    scenario_path: str,
    headless: bool | None = None,
    url: str | None = None,
    halt: bool = False,
) -> int:
    load_dotenv()

    from stepqueue import scenario
    from stepqueue.browser import BrowserController
    from stepqueue.chain import HandlerChain
    from stepqueue.config import RunnerConfig, default_decorators
    from stepqueue.handlers import page_handlers
    from stepqueue.metrics import MetricsCollector
    from stepqueue.runner import FailurePolicy, Runner

    config = RunnerConfig.from_env()
    if headless is not None:
        config.headless = headless
    if url:
        config.base_url = url
    if halt:
        config.policy = FailurePolicy.HALT_ON_FAILURE

    actions = scenario.load(scenario_path)
    metrics = MetricsCollector()

    async with BrowserController(headless=config.headless, base_url=config.base_url) as browser:
        runner = Runner(
            actions,
            HandlerChain(page_handlers(browser.page)),
            decorators=default_decorators(config),
            policy=config.policy,
            verbose=config.verbose,
        )
        metrics.attach(runner.bus)
        report = await runner.start()

    metrics.print_report(state=report.state.value)
    return 0 if report.succeeded else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run a step scenario in a browser")
    parser.add_argument("scenario", type=str, help="Scenario file, one step per line")
    parser.add_argument("--no-headless", action="store_true", help="Run with visible browser")
    parser.add_argument("--url", type=str, default=None, help="Base URL for relative goto steps")
    parser.add_argument("--halt", action="store_true", help="Stop at the first failing step")
    args = parser.parse_args()

    exit_code = asyncio.run(
        main(
            args.scenario,
            headless=False if args.no_headless else None,
            url=args.url,
            halt=args.halt,
        )
    )
    sys.exit(exit_code)
