#!/usr/bin/env python3
# Example usage of embedded_json_doc_store

from embedded_json_doc_store import Database, KeyNotFoundError, Tree
from rich.console import Console

console = Console()

def main() -> None:
    # Create the database instance (no I/O yet), then open or create the file
    db = Database(path="hello.dino")
    db.load()

    # Insert values; each call rewrites the file
    db.insert("key", "q")
    db.insert_number("visits", 1)
    db.insert_bool("enabled", True)
    db.insert_array("tags", ["hello", "world"])

    # Build a detached sub tree and copy it under "id"
    data_tree = Tree()
    data_tree.insert("b", "c")
    db.insert_tree("id", data_tree)

    console.print(f"The value of key: id is {db.find('id')}", highlight=False)

    try:
        db.find("not_exists")
        console.print("This is unfortunate :(")
    except KeyNotFoundError as error:
        console.print(f"Everything works! Here is the error for reference: {error}", highlight=False)

    db.remove("id")
    if db.contains_key("id"):
        console.print("The key `id` exists!")

    console.print(f"The length of items in the database is: {len(db)}")
    db.close()

if __name__ == "__main__":
    main()
