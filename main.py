"""Market Research Agents

Simple CLI for running the sentiment, competitor and trend agents once.
"""

import argparse
import asyncio
import json
import sys

from app.agents import dispatcher
from app.config import settings
from app.errors import ConfigurationError
from app.models.outcomes import Credentials, ResearchRequest


def build_request(args: argparse.Namespace) -> ResearchRequest:
    return ResearchRequest(
        product_name=args.product.strip(),
        company_name=(args.company or "").strip() or None,
        project_id=args.project_id,
        credentials=Credentials(
            search_api_key=settings.perplexity_api_key or None,
            llm_api_key=settings.llm_api_key or None,
        ),
    )


async def run_research(request: ResearchRequest, as_json: bool = False) -> int:
    """Run all agents for one product and print the outcome."""
    print(f"Researching: {request.product_name}")
    print("-" * 50)

    try:
        result = await dispatcher.run_agents(request)
    except ConfigurationError as e:
        print(f"\n[!] {e}")
        return 2

    if as_json:
        print(json.dumps(result.to_response(), indent=2))
        return 0 if result.success else 1

    for outcome in result.outcomes:
        if outcome.is_completed:
            payload = outcome.payload
            print(
                f"[+] {outcome.kind.value}: {payload.data_status.value} "
                f"(confidence {payload.confidence}, {payload.results_count} results)"
            )
        else:
            print(f"[!] {outcome.kind.value}: {outcome.error_message}")

    print(f"\n{'='*50}")
    print("SUMMARY:")
    print(f"{'='*50}")
    print(result.summary)
    return 0 if result.success else 1


def main():
    parser = argparse.ArgumentParser(description="Market Research Agents")
    parser.add_argument("--product", "-p", required=True, help="Product name to research")
    parser.add_argument("--company", "-c", help="Company that makes the product")
    parser.add_argument("--project-id", default="cli", help="Project id used for stored results")
    parser.add_argument("--json", action="store_true", help="Print the raw API response")

    args = parser.parse_args()

    sys.exit(asyncio.run(run_research(build_request(args), as_json=args.json)))


if __name__ == "__main__":
    main()
