"""
dsevents - Login Example

Shows how to tell the different login failures apart.
"""

from dsevents import (
    AuthenticationError,
    ConnectionConfig,
    DSServer,
    InvalidLicenseError,
    ServerUnreachableError,
    TransportError,
)

# =============================================================================
# Your server
# =============================================================================
config = ConnectionConfig(
    host="localhost",
    port=1099,
    username="admin",
    password="admin",
)


def main():

    server = DSServer(config)

    try:
        server.connect()
        print(f"Connected to {server.name} {server.version}")

        username = input("Username: ").strip()
        password = input("Password: ").strip()

        with server.create_session(config.domain, username, password) as session:
            print(f"\nLogged in as {session.username} ({session.domain})")
            input("\nPress Enter to log out...")

    except ServerUnreachableError as e:
        print(f"Server not reachable: {e}")
    except InvalidLicenseError as e:
        print(f"License problem: {e}")
    except AuthenticationError as e:
        print(f"Login rejected: {e}")
    except TransportError as e:
        print(f"Something else went wrong: {e}")


if __name__ == "__main__":
    main()
