from datetime import date
from sqlalchemy import String, Numeric, Date
from sqlalchemy.orm import Mapped, mapped_column
from agency_api.database.base import Base


class Order(Base):
    """
    Customer order taken by an agent.

    CUST_CODE and AGENT_CODE are plain references (no foreign keys), see Customer.
    """
    __tablename__ = "orders"

    ord_num: Mapped[str] = mapped_column("ORD_NUM", String(6), primary_key=True)

    ord_amount: Mapped[float | None] = mapped_column("ORD_AMOUNT", Numeric(12, 2, asdecimal=False))

    advance_amount: Mapped[float | None] = mapped_column("ADVANCE_AMOUNT", Numeric(12, 2, asdecimal=False))

    ord_date: Mapped[date | None] = mapped_column("ORD_DATE", Date)

    cust_code: Mapped[str | None] = mapped_column("CUST_CODE", String(6))

    agent_code: Mapped[str | None] = mapped_column("AGENT_CODE", String(6))

    ord_description: Mapped[str | None] = mapped_column("ORD_DESCRIPTION", String(60))

    def __repr__(self) -> str:
        return f"<Order(ord_num={self.ord_num!r}, cust_code={self.cust_code!r})>"
