"""Run the parity launcher service."""

from parity_launcher.__main__ import main

if __name__ == "__main__":
    main()
