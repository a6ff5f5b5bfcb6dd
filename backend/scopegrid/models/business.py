"""
Business Models: vendor sites and content master data served through views
"""
from datetime import datetime
from sqlalchemy import (
    Column, Integer, BigInteger, String, Boolean, DateTime, Float, Numeric
)
from scopegrid.database.session import Base


# ============================================================================
# Vendor Sites
# ============================================================================

class Site(Base):
    __tablename__ = "sites"

    id = Column(Integer, primary_key=True, autoincrement=True)
    website = Column(String(500), nullable=False)
    niche = Column(String(200))
    site_category = Column(String(200))
    da = Column(Integer)
    pa = Column(Integer)
    person = Column(String(200))
    price = Column(Integer)
    sailing_price = Column(Integer)
    discount = Column(Integer)
    adult = Column(Integer)
    casino_adult = Column(Integer)
    contact = Column(String(500))
    follow = Column(String(50))
    price_category = Column(String(100))
    traffic = Column(BigInteger)
    spam_score = Column(Float)
    vendor_country = Column(String(100))
    phone_number = Column(BigInteger)
    bank_details = Column(String(1000))
    dr = Column(Integer)
    web_country = Column(String(100))
    language = Column(String(100))
    website_type = Column(String(100))
    website_status = Column(String(100))
    website_quality = Column(String(100))
    num_of_links = Column(Integer)
    organic_traffic = Column(BigInteger)
    semrush_traffic = Column(BigInteger)
    verified = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)


# ============================================================================
# Content Orders
# ============================================================================

class MasterData(Base):
    __tablename__ = "master_data"

    id = Column(Integer, primary_key=True, autoincrement=True)
    order_number = Column(String(100), nullable=False)
    client_name = Column(String(200))
    client_email = Column(String(200))
    content_category = Column(String(200))
    content_link = Column(String(1000))
    house_cost = Column(Numeric(12, 2))
    price_quoted = Column(Numeric(12, 2))
    created_at = Column(DateTime, default=datetime.utcnow)
