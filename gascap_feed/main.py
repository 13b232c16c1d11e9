from __future__ import annotations

from gascap_feed.config import load_settings
from gascap_feed.runtime.app import run_main


def main() -> None:
    run_main(load_settings())


if __name__ == "__main__":
    main()
