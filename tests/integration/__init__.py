from sqlalchemy import text
from sqlalchemy.orm import Session


def count_rows(session: Session, table: str) -> int:
    [[count]] = session.execute(text(f"SELECT count(*) FROM {table}"))
    return count


def insert_order(session: Session, customer_id: int, amount: int) -> None:
    session.execute(
        text("INSERT INTO order_line (customer_id, amount) VALUES (:cid, :amount)"),
        dict(cid=customer_id, amount=amount),
    )
