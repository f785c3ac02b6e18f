"""PJ bookkeeping engine: classification, rollups, statements and settlements."""

__version__ = "0.1.0"


# Import main lazily; the CLI pulls in every service module
def __getattr__(name):
    if name == "main":
        from pjledger.cli.main import main
        return main
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
