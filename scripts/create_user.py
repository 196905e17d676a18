#!/usr/bin/env python3
from __future__ import annotations

from getpass import getpass

from authgate.auth.users import YamlCredentialStore
from authgate.domain import Role
from authgate.exceptions import DuplicateEmailError, ValidationError
from authgate.services.account_service import register

def main() -> None:
    store = YamlCredentialStore()

    name = input("Name: ").strip()
    email = input("Email: ").strip()
    role_in = input("Role [admin/staff/guest]: ").strip().lower() or Role.GUEST.value
    if role_in not in {r.value for r in Role}:
        raise SystemExit(f"Unknown role: {role_in}")

    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    try:
        identity = register(store, name=name, email=email, password=pw1, role=Role(role_in))
    except ValidationError as e:
        raise SystemExit("\n".join(e.errors))
    except DuplicateEmailError as e:
        raise SystemExit(str(e))
    print(f"OK {identity.id} ({identity.role.value}) -> {store.path}")


if __name__ == "__main__":
    main()
