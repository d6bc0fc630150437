#!/usr/bin/env python3
"""
Tiered Burn Ledger Entry Point

Starts the FastAPI server with the configured host and port.
"""

import sys

from token_ledger.api import run_server
from token_ledger.config import get_config
from token_ledger.logging_config import setup_logging


if __name__ == "__main__":
    config = get_config()
    setup_logging(config.log_level, config.log_format, config.log_file)
    
    print("Starting Tiered Burn Ledger...")
    print(f"API available at: http://localhost:{config.api_port}")
    print(f"Documentation at: http://localhost:{config.api_port}/docs")
    
    try:
        run_server(host=config.api_host, port=config.api_port)
    except KeyboardInterrupt:
        print("\nShutting down Tiered Burn Ledger...")
    except Exception as e:
        print(f"Error starting server: {e}")
        sys.exit(1)
