from init_db import db
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError


class LeadSequence(db.Model):
    """Per-year counter behind LEAD-<year>-<seq> identifiers"""
    __tablename__ = "lead_sequences"

    year = db.Column(db.Integer, primary_key=True, autoincrement=False)
    last_value = db.Column(db.Integer, nullable=False, default=0)

    @classmethod
    def _increment(cls, year):
        return db.session.execute(
            update(cls)
            .where(cls.year == year)
            .values(last_value=cls.last_value + 1)
            .execution_options(synchronize_session=False)
        )

    @classmethod
    def next_value(cls, year):
        """
        Increment and return the counter for `year` inside the current transaction

        The increment is a single UPDATE statement, so two writers never read the
        same value. The year row is created on first use; if another request
        creates it at the same moment the unique key rejects ours and we fall
        back to incrementing theirs.
        """
        result = cls._increment(year)
        if result.rowcount == 0:
            try:
                with db.session.begin_nested():
                    db.session.add(cls(year=year, last_value=1))
                return 1
            except IntegrityError:
                cls._increment(year)

        return db.session.execute(
            select(cls.last_value).where(cls.year == year)
        ).scalar_one()

    def __repr__(self):
        return f"<LeadSequence {self.year}: {self.last_value}>"
