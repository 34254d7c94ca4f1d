from sqlalchemy import String, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from agency_api.database.base import Base


class Customer(Base):
    """
    Customer account with its running balances.

    AGENT_CODE points at agents.AGENT_CODE but carries no foreign key:
    referential integrity is left to whatever the deployed database enforces.
    """
    __tablename__ = "customer"

    cust_code: Mapped[str] = mapped_column("CUST_CODE", String(6), primary_key=True)

    cust_name: Mapped[str] = mapped_column("CUST_NAME", String(40), nullable=False)

    cust_city: Mapped[str | None] = mapped_column("CUST_CITY", String(35))

    working_area: Mapped[str | None] = mapped_column("WORKING_AREA", String(35))

    cust_country: Mapped[str | None] = mapped_column("CUST_COUNTRY", String(20))

    grade: Mapped[int | None] = mapped_column("GRADE", Integer)

    # --- Balances ---
    opening_amt: Mapped[float | None] = mapped_column("OPENING_AMT", Numeric(12, 2, asdecimal=False))

    receive_amt: Mapped[float | None] = mapped_column("RECEIVE_AMT", Numeric(12, 2, asdecimal=False))

    payment_amt: Mapped[float | None] = mapped_column("PAYMENT_AMT", Numeric(12, 2, asdecimal=False))

    outstanding_amt: Mapped[float | None] = mapped_column("OUTSTANDING_AMT", Numeric(12, 2, asdecimal=False))

    phone_no: Mapped[str | None] = mapped_column("PHONE_NO", String(17))

    agent_code: Mapped[str | None] = mapped_column("AGENT_CODE", String(6))

    def __repr__(self) -> str:
        return f"<Customer(cust_code={self.cust_code!r}, cust_name={self.cust_name!r})>"
