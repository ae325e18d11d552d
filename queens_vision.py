"""
Root entry point – delegates to the queens_vision package.

Usage:
    python queens_vision.py detect --image puzzle.png --output board.json
    python queens_vision.py solve  --board board.json
    python queens_vision.py run    --image puzzle.png
"""

from queens_vision.main import main

if __name__ == "__main__":
    main()
