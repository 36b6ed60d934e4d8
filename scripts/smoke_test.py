#!/usr/bin/env python3
"""
Borrow/Return Smoke Test

Walks through the borrow/return flow against running services:

1. Register a STUDENT member in the User Service
2. Add a 3-copy book to the Book Service
3. Borrow it three times (3 → 0 copies, 0 → 3 borrowed)
4. Check that a fourth borrow is refused with 409
5. Return all three copies and check both counters are restored
6. Clean up the member and the book

USAGE:
    uvicorn user_service.main:app --port 8081 &
    uvicorn book_service.main:app --port 8080 &
    python scripts/smoke_test.py

    python scripts/smoke_test.py --books-url http://books:8080 --users-url http://users:8081
"""

import argparse
import sys
import uuid

import httpx


def check(condition: bool, message: str) -> None:
    if not condition:
        print(f"FAILED: {message}")
        sys.exit(1)
    print(f"ok - {message}")


def run(books_url: str, users_url: str, timeout: float) -> None:
    suffix = uuid.uuid4().hex[:8]
    isbn = "978" + str(uuid.uuid4().int)[:10]

    with httpx.Client(timeout=timeout) as client:
        check(client.get(f"{users_url}/api/users/health").status_code == 200, "User Service is up")
        check(client.get(f"{books_url}/api/books/health").status_code == 200, "Book Service is up")

        user = client.post(
            f"{users_url}/api/users",
            json={
                "name": "Smoke Test",
                "email": f"smoke-{suffix}@example.com",
                "membershipType": "STUDENT",
            },
        ).json()
        user_id = user["id"]
        check(user["maxBooksAllowed"] == 3, f"created STUDENT user {user_id}")

        book = client.post(
            f"{books_url}/api/books",
            json={
                "isbn": isbn,
                "title": f"Smoke Test {suffix}",
                "author": "Smoke Test",
                "totalCopies": 3,
                "availableCopies": 3,
            },
        ).json()
        check(book["availableCopies"] == 3, f"created book {isbn}")

        params = {"userId": user_id}
        for expected in (2, 1, 0):
            response = client.put(f"{books_url}/api/books/{isbn}/borrow", params=params)
            check(
                response.status_code == 200
                and response.json()["availableCopies"] == expected,
                f"borrow -> {expected} available",
            )

        response = client.put(f"{books_url}/api/books/{isbn}/borrow", params=params)
        check(response.status_code == 409, "fourth borrow refused with 409")

        for expected in (1, 2, 3):
            response = client.put(f"{books_url}/api/books/{isbn}/return", params=params)
            check(
                response.status_code == 200
                and response.json()["availableCopies"] == expected,
                f"return -> {expected} available",
            )

        user = client.get(f"{users_url}/api/users/{user_id}").json()
        check(user["borrowedBooksCount"] == 0, "user has no books out")

        client.delete(f"{books_url}/api/books/{book['id']}")
        client.delete(f"{users_url}/api/users/{user_id}")

    print("Smoke test passed.")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Borrow/return smoke test")
    parser.add_argument("--books-url", default="http://localhost:8080")
    parser.add_argument("--users-url", default="http://localhost:8081")
    parser.add_argument("--timeout", type=float, default=5.0)
    args = parser.parse_args()

    try:
        run(args.books_url.rstrip("/"), args.users_url.rstrip("/"), args.timeout)
    except httpx.HTTPError as exc:
        print(f"FAILED: {exc}")
        sys.exit(1)
