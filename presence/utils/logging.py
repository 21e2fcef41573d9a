import logging, sys
def setup(level=logging.INFO):
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    # Suppress per-request access logs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
