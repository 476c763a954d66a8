"""WebSocket subscription examples for graphql-cli-tools."""

import asyncio

from graphql_cli_tools import GraphQLResponse
from graphql_cli_tools import OperationRequest
from graphql_cli_tools import ReconnectDriver
from graphql_cli_tools import ReconnectPolicy
from graphql_cli_tools import execute
from graphql_cli_tools import create_executor
from graphql_cli_tools.sink import CollectingSink


async def basic_subscription():
    """Print every message of a subscription until the server completes it."""

    async def on_message(response: GraphQLResponse) -> None:
        print(response.to_json(indent=None))

    outcome = await execute(
        "ws://localhost:8000/api/graphql",
        "subscription { countdown(from: 5) }",
        on_message,
    )
    print(f"Finished after {outcome.attempts} attempt(s)")


async def resilient_subscription():
    """Keep a subscription alive across server restarts for 30 seconds."""

    endpoint = "ws://localhost:8000/api/graphql"
    request = OperationRequest(
        endpoint=endpoint,
        query="subscription OnMessage { messageAdded { id text } }",
        operation_name="OnMessage",
    )
    sink = CollectingSink()
    driver = ReconnectDriver(create_executor(endpoint), ReconnectPolicy(interval=1.0))

    task = asyncio.create_task(driver.run(request, sink))
    await asyncio.sleep(30)

    # Stop retrying; a live subscription still has to be cancelled
    driver.stop()
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass

    print(f"Received {len(sink.responses)} message(s) over {driver.attempts} attempt(s)")


async def main():
    """Run all examples."""
    print("=== Basic subscription ===")
    await basic_subscription()

    print("\n=== Resilient subscription ===")
    await resilient_subscription()


if __name__ == "__main__":
    asyncio.run(main())
