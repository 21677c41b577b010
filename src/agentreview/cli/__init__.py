def main() -> None:
    """CLI entrypoint for the agentreview console script."""
    from agentreview.cli.app import app

    app()
