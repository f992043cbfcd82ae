import sys

from mcp_simple_server.main import main

if __name__ == "__main__":
    sys.exit(main())
