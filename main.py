from aistudio_catalog.scraper.run import _cli_entrypoint

if __name__ == "__main__":
    # Environment variables (CATALOG_*) supply defaults; flags override them.
    raise SystemExit(_cli_entrypoint())
