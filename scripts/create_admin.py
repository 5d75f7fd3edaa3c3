import argparse
import sys
import anyio
from dotenv import load_dotenv

load_dotenv()

from borrowtrack.configs import ADMIN_ACCOUNT
from borrowtrack.core import identity
from borrowtrack.core.exceptions import BorrowTrackError


def main():
    parser = argparse.ArgumentParser(description="Create the BorrowTrack admin account")
    parser.add_argument("--username", default=ADMIN_ACCOUNT['username'])
    parser.add_argument("--email", default=ADMIN_ACCOUNT['email'])
    parser.add_argument("--password", default=ADMIN_ACCOUNT['password'],
                        required=not ADMIN_ACCOUNT['password'])
    args = parser.parse_args()

    try:
        profile = anyio.run(identity.ensure_admin, args.username, args.email, args.password)
    except BorrowTrackError as e:
        print(f"Could not create admin: {e}", file=sys.stderr)
        sys.exit(1)
    if profile is None:
        print(f"Admin '{args.username}' already exists.")
        return
    print(f"Success! Admin '{profile.username}' created.")


if __name__ == "__main__":
    main()
