"""
dsevents - Object Events Example

Subscribes to object changes only and handles them without the printer.
"""

from dsevents import ConnectionConfig, DSError, ObjectEvent, bootstrap
from dsevents.events import OBJECT_KINDS

config = ConnectionConfig(username="admin", password="admin")


def main():

    try:
        session = bootstrap(config)
    except DSError as e:
        print(f"Could not log in: {e}")
        return

    with session, session.subscribe(sorted(OBJECT_KINDS)) as events:
        print("Watching object changes... Press Ctrl+C to exit")
        try:
            for event in events:
                if not isinstance(event, ObjectEvent):
                    continue
                changed = ", ".join(event.property_names) or "(no properties)"
                print(f"{event.kind_name}: {event.object_handle} by {event.principal}: {changed}")
        except KeyboardInterrupt:
            print("\nDisconnecting...")


if __name__ == "__main__":
    main()
