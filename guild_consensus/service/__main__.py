"""Entry point for running the consensus service as a module."""

import asyncio

from .service import main

if __name__ == "__main__":
    asyncio.run(main())
