from sqlalchemy import String, Numeric
from sqlalchemy.orm import Mapped, mapped_column
from agency_api.database.base import Base


class Agent(Base):
    """
    Sales agent. Customers and orders refer to an agent by AGENT_CODE.
    """
    __tablename__ = "agents"

    # Caller-supplied code, e.g. "A001"
    agent_code: Mapped[str] = mapped_column("AGENT_CODE", String(6), primary_key=True)

    agent_name: Mapped[str] = mapped_column("AGENT_NAME", String(40), nullable=False)

    working_area: Mapped[str | None] = mapped_column("WORKING_AREA", String(35))

    # Commission rate, e.g. 0.15
    commission: Mapped[float | None] = mapped_column("COMMISSION", Numeric(10, 2, asdecimal=False))

    phone_no: Mapped[str | None] = mapped_column("PHONE_NO", String(15))

    country: Mapped[str | None] = mapped_column("COUNTRY", String(25))

    def __repr__(self) -> str:
        return f"<Agent(agent_code={self.agent_code!r}, agent_name={self.agent_name!r})>"
