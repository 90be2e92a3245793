import uvicorn

from ocrsearch.bootstrap import build_services
from ocrsearch.config import load_config
from ocrsearch.interface.api import create_app

# ── App Initialization ───────────────────────────────────────────────────────
config = load_config()
services = build_services(config)
app = create_app(services)

if __name__ == "__main__":
    uvicorn.run(app, host=config.api_host, port=config.api_port)
