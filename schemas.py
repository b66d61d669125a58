"""
Database Schemas for the Catalog API

Each Pydantic model corresponds to one MongoDB collection.
Collection name is the lowercase of the class name.
"""
from typing import List, Optional
from pydantic import BaseModel, Field, EmailStr

class Category(BaseModel):
    name: str
    icon: str = ""
    color: str = ""

class User(BaseModel):
    name: str = Field(..., description="Full name")
    email: EmailStr
    password_hash: str = Field(..., description="bcrypt hash of the password")
    phone: str
    is_admin: bool = False
    street: str = ""
    apartment: str = ""
    zip: str = ""
    city: str = ""
    country: str = ""

class Product(BaseModel):
    name: str
    description: str
    long_description: str = ""
    image: Optional[str] = Field(None, description="Public URL of the primary image")
    images: List[str] = []
    brand: str = ""
    price: float = 0
    category: str = Field(..., description="Category id")
    count_in_stock: int = Field(..., ge=0)
    rating: float = 0
    num_reviews: int = 0
    is_featured: bool = False
