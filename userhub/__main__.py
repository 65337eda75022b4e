"""Entry point for running UserHub via `python -m userhub`."""

from userhub import UserHubService
from userhub.core.settings import get_userhub_config


def main() -> None:
    config = get_userhub_config()
    url = config.USERHUB.URL

    print(f"Starting UserHub service at {url}...")
    print("Press Ctrl+C to stop.")

    UserHubService(url=url).launch()


if __name__ == "__main__":
    main()
