"""Command-line entry point: python -m pathwarp"""
from pathwarp.main import main

if __name__ == "__main__":
    main()
