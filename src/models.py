from sqlalchemy import Column, Integer, BigInteger, String, DateTime, Date, Text, ForeignKey, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from src.database import Base
from src.contracts.enums import ContractStatus

# SQLite only autoincrements INTEGER primary keys
Id = BigInteger().with_variant(Integer, "sqlite")

# ================================
# Users & Roles
# ================================
class User(Base):
    __tablename__ = "users"

    id = Column(Id, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password = Column(String(255), nullable=False)
    phone = Column(String(30))
    address = Column(String(500))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user_roles = relationship("UserHasRole", back_populates="user")
    bus_operators = relationship("BusOperator", back_populates="owner")

class Role(Base):
    __tablename__ = "roles"

    id = Column(Id, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    user_roles = relationship("UserHasRole", back_populates="role")

class UserHasRole(Base):
    __tablename__ = "user_has_roles"

    id = Column(Id, primary_key=True, index=True)
    user_id = Column(Id, ForeignKey("users.id"), nullable=False)
    role_id = Column(Id, ForeignKey("roles.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="user_roles")
    role = relationship("Role", back_populates="user_roles")

# ================================
# Bus Operators
# ================================
class BusOperator(Base):
    __tablename__ = "bus_operators"

    id = Column(Id, primary_key=True, index=True)
    owner_id = Column(Id, ForeignKey("users.id"), nullable=False, index=True)
    contract_id = Column(Id, ForeignKey("contracts.id"), unique=True, nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    hotline = Column(String(30))
    address = Column(String(500))
    license_path = Column(String(500))
    status = Column(String(50), default="active", index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship("User", back_populates="bus_operators")
    contract = relationship("Contract", back_populates="bus_operator")

# ================================
# Operator Contracts
# ================================
class Contract(Base):
    __tablename__ = "contracts"

    id = Column(Id, primary_key=True, index=True)
    vat_code = Column(String(50), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(30), nullable=False)
    address = Column(String(500), nullable=False)
    start_date = Column(Date)
    end_date = Column(Date)
    operation_area = Column(String(255), nullable=False, index=True)
    license_url = Column(String(500))
    status = Column(
        Enum(ContractStatus, name="contract_status", native_enum=False, length=20),
        nullable=False,
        default=ContractStatus.PENDING,
        index=True
    )
    admin_note = Column(Text)
    created_date = Column(DateTime(timezone=True), nullable=False, index=True)
    created_by = Column(String(255))
    last_modified = Column(DateTime(timezone=True))
    last_modified_by = Column(String(255))
    approved_date = Column(DateTime(timezone=True))

    # Relationships
    bus_operator = relationship("BusOperator", back_populates="contract", uselist=False)
