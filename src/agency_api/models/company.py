from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from agency_api.database.base import Base


class Company(Base):
    __tablename__ = "company"

    company_id: Mapped[str] = mapped_column("COMPANY_ID", String(6), primary_key=True)

    company_name: Mapped[str] = mapped_column("COMPANY_NAME", String(25), nullable=False)

    company_city: Mapped[str | None] = mapped_column("COMPANY_CITY", String(25))

    def __repr__(self) -> str:
        return f"<Company(company_id={self.company_id!r}, company_name={self.company_name!r})>"
