from sqlalchemy import BigInteger, Column, Index, Integer, MetaData, String, Text
from sqlalchemy.dialects import mysql
from sqlalchemy.orm import declarative_base

metadata = MetaData()
Base = declarative_base(metadata=metadata)

# Block documents routinely exceed MySQL's 64KB TEXT limit
LargeText = Text().with_variant(mysql.MEDIUMTEXT(), "mysql")


class BlockData(Base):
    __tablename__ = "block_data"
    __table_args__ = (
        Index("idx_block_data_number", "number"),
        {"comment": "Marshaled block documents and their call traces"},
    )

    number = Column(BigInteger, nullable=False)
    hash = Column(String(66), primary_key=True)
    block_data = Column(LargeText, nullable=False)
    trace_data = Column(LargeText, nullable=True)


class InternalTransaction(Base):
    __tablename__ = "internal_transactions"
    __table_args__ = ({"comment": "Value transfers found in transaction call trees"},)

    tx_hash = Column(String(66), primary_key=True)
    block_hash = Column(String(66), nullable=False)
    block_number = Column(BigInteger, nullable=False)
    tx_index = Column(Integer, nullable=False)
    call_index = Column(Integer, primary_key=True, autoincrement=False)
    # "from" and "to" are reserved words, SQLAlchemy quotes them per dialect
    from_address = Column("from", String(42), key="from_address", nullable=False)
    to_address = Column("to", String(42), key="to_address", nullable=False)
    value = Column(String(66), nullable=False)


TABLE_METADATA = {
    "block_data": BlockData.__table__,
    "internal_transactions": InternalTransaction.__table__,
}
