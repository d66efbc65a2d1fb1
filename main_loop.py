# main_loop.py
# Same as `python main_sync.py --loop`: sync every LOOP_INTERVAL seconds.
# A failed run is logged and sent to Telegram; the loop keeps going until Ctrl+C.

import sys

from main_sync import main

if __name__ == "__main__":
    sys.exit(main(["--loop"] + sys.argv[1:]))
