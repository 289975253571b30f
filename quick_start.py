"""
dsevents - Quick Start

Minimal example: log in and print every event the server sends.
Everything else (encrypting the password, the event channel) runs
automatically.
"""

import sys

from dsevents import ConnectionConfig, DSError, EventPrinter, bootstrap

# =============================================================================
# STEP 1: Where and who
# =============================================================================
config = ConnectionConfig(
    host="localhost",
    port=1099,
    domain="DocuShare",
    username="admin",
    password="admin",
)

# =============================================================================
# STEP 2: Log in
# =============================================================================
try:
    session = bootstrap(config)
except DSError as e:
    print(f"Could not log in: {e}")
    sys.exit(1)

# =============================================================================
# STEP 3: Print events until Ctrl-C
# =============================================================================
printer = EventPrinter()

with session, printer.subscribe(session) as events:
    print("Press CTRL C to exit....")
    try:
        printer.run(events)
    except KeyboardInterrupt:
        print("\nDisconnecting...")
