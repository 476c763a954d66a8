"""Basic usage examples for graphql-cli-tools."""

import asyncio

from graphql_cli_tools import GraphQLResponse
from graphql_cli_tools import JSONPrintSink
from graphql_cli_tools import execute
from graphql_cli_tools.config import ClientSettings
from graphql_cli_tools.config import HTTPSettings


async def simple_query():
    """Run a single query over HTTP and print the response."""

    outcome = await execute(
        "http://localhost:8000/api/graphql",
        "query Hero($episode: String) { hero(episode: $episode) { name } }",
        JSONPrintSink(),
        operation_name="Hero",
        variables={"episode": "JEDI"},
        headers=[("Authorization", "Bearer your_token_here")],
    )

    if not outcome.succeeded:
        print(f"Query failed: {outcome.last_error}")


async def query_with_handler():
    """Handle responses with a plain function."""

    def on_response(response: GraphQLResponse) -> None:
        if response.has_errors:
            for error in response.errors:
                print(f"GraphQL error: {error.get('message')}")
        else:
            print(f"Data: {response.data}")

    settings = ClientSettings(http=HTTPSettings(timeout=10.0))

    await execute(
        "https://countries.trevorblades.com/graphql",
        "{ country(code: \"BR\") { name capital } }",
        on_response,
        settings=settings,
    )


async def main():
    """Run all examples."""
    print("=== Simple query ===")
    await simple_query()

    print("\n=== Query with handler ===")
    await query_with_handler()


if __name__ == "__main__":
    asyncio.run(main())
