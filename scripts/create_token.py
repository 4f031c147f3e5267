import sys
import os
import argparse
sys.path.append(os.path.join(os.path.dirname(__file__), '..', 'src'))

from auth import UserRole, create_access_token


def create_token():
    parser = argparse.ArgumentParser(description="Issue an access token for local testing")
    parser.add_argument("email")
    parser.add_argument("--role", default=UserRole.CUSTOMER.value, choices=[r.value for r in UserRole])
    parser.add_argument("--user-id", default="1")
    args = parser.parse_args()

    if not os.getenv("SECRET_KEY"):
        print("SECRET_KEY is not set; the server will not accept this token")

    token = create_access_token(args.user_id, args.email, UserRole(args.role))
    print(f"Role: {args.role}")
    print(f"Authorization: Bearer {token}")


if __name__ == "__main__":
    create_token()
