import logging
from typing import List, Optional

from bson import ObjectId
from fastapi import APIRouter, Depends, File, Form, Path, Request, UploadFile
from pydantic import BaseModel
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from auth import require_admin
from database import create_document, get_db, parse_object_id, serialize_doc
from errors import InvalidReferenceError, NotFoundError, StoreFault, UploadError
from schemas import Product as ProductSchema
from uploads import image_extension, store_image, store_images

logger = logging.getLogger(__name__)

router = APIRouter(tags=["products"])
admin = [Depends(require_admin)]


class ProductUpdateBody(BaseModel):
    """Full replacement of a product. Omitted fields are stored as null."""

    name: Optional[str] = None
    description: Optional[str] = None
    long_description: Optional[str] = None
    image: Optional[str] = None
    brand: Optional[str] = None
    price: Optional[float] = None
    category: Optional[str] = None
    count_in_stock: Optional[int] = None
    rating: Optional[float] = None
    num_reviews: Optional[int] = None
    is_featured: Optional[bool] = None


def product_form(
    name: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    long_description: Optional[str] = Form(None),
    brand: Optional[str] = Form(None),
    price: Optional[float] = Form(None),
    category: Optional[str] = Form(None),
    count_in_stock: Optional[int] = Form(None),
    rating: Optional[float] = Form(None),
    num_reviews: Optional[int] = Form(None),
    is_featured: Optional[bool] = Form(None),
) -> dict:
    fields = {
        "name": name,
        "description": description,
        "long_description": long_description,
        "brand": brand,
        "price": price,
        "category": category,
        "count_in_stock": count_in_stock,
        "rating": rating,
        "num_reviews": num_reviews,
        "is_featured": is_featured,
    }
    return {k: v for k, v in fields.items() if v is not None}


def resolve_category(db, category_id: Optional[str]) -> dict:
    if not category_id or not ObjectId.is_valid(category_id):
        raise InvalidReferenceError("Invalid category!")
    category = db["category"].find_one({"_id": ObjectId(category_id)})
    if not category:
        raise InvalidReferenceError("Invalid category!")
    return category


def populate_categories(db, products: List[dict]) -> List[dict]:
    ids = {p["category"] for p in products if isinstance(p.get("category"), ObjectId)}
    categories = {c["_id"]: serialize_doc(c) for c in db["category"].find({"_id": {"$in": list(ids)}})}
    result = []
    for p in products:
        item = serialize_doc(p)
        item["category"] = categories.get(p.get("category"))
        result.append(item)
    return result


def require_product(db, oid: ObjectId) -> None:
    if not db["product"].count_documents({"_id": oid}, limit=1):
        raise NotFoundError("Product not found!")


def replace_fields(db, oid: ObjectId, update: dict) -> dict:
    product = db["product"].find_one_and_update(
        {"_id": oid},
        {"$set": update},
        return_document=ReturnDocument.AFTER,
    )
    if not product:
        raise NotFoundError("Product not found!")
    return serialize_doc(product)


@router.get("/")
def list_products(categories: Optional[str] = None, db=Depends(get_db)) -> List[dict]:
    filt = {}
    ids = [c.strip() for c in (categories or "").split(",") if c.strip()]
    if ids:
        filt["category"] = {"$in": [parse_object_id(c, "Invalid category!") for c in ids]}
    return populate_categories(db, list(db["product"].find(filt)))


@router.get("/get/count")
def count_products(db=Depends(get_db)):
    return {"count": db["product"].count_documents({})}


def find_featured(db, count: int = 0) -> List[dict]:
    cursor = db["product"].find({"is_featured": True})
    # zero means no limit
    if count:
        cursor = cursor.limit(count)
    return [serialize_doc(p) for p in cursor]


@router.get("/get/featured")
def all_featured_products(db=Depends(get_db)) -> List[dict]:
    return find_featured(db)


@router.get("/get/featured/{count}")
def featured_products(count: int = Path(..., ge=0), db=Depends(get_db)) -> List[dict]:
    return find_featured(db, count)


@router.get("/{product_id}")
def get_product(product_id: str, db=Depends(get_db)):
    oid = parse_object_id(product_id, "Invalid product id!")
    product = db["product"].find_one({"_id": oid})
    if not product:
        raise NotFoundError("Product not found!")
    return populate_categories(db, [product])[0]


@router.delete("/{product_id}", dependencies=admin)
def delete_product(product_id: str, db=Depends(get_db)):
    oid = parse_object_id(product_id, "Invalid product id!")
    try:
        product = db["product"].find_one_and_delete({"_id": oid})
    except PyMongoError as e:
        logger.exception("Deleting product %s failed", product_id)
        raise StoreFault(str(e), status_code=400)
    if not product:
        raise NotFoundError("Product not found!")
    logger.info("Deleted product %s", product_id)
    return {"success": True, "message": "Product deleted!"}


@router.post("/", dependencies=admin)
def create_product(
    request: Request,
    fields: dict = Depends(product_form),
    image: Optional[UploadFile] = File(None),
    db=Depends(get_db),
):
    category = resolve_category(db, fields.get("category"))
    if image is None:
        raise UploadError("No image in the request!")
    image_extension(image)
    product = ProductSchema(**fields)

    doc = product.model_dump()
    doc["category"] = category["_id"]
    doc["image"] = store_image(request, image)
    product_id = create_document(db, "product", doc)
    logger.info("Created product %s (%s)", product_id, product.name)
    return serialize_doc(db["product"].find_one({"_id": ObjectId(product_id)}))


@router.put("/gallery-images/{product_id}", dependencies=admin)
def update_gallery(
    request: Request,
    product_id: str,
    images: Optional[List[UploadFile]] = File(None),
    db=Depends(get_db),
):
    oid = parse_object_id(product_id, "Invalid product id!")
    require_product(db, oid)
    paths = store_images(request, images or [])
    return replace_fields(db, oid, {"images": paths})


@router.put("/image/{product_id}", dependencies=admin)
def upload_product_image(
    request: Request,
    product_id: str,
    image: Optional[UploadFile] = File(None),
    db=Depends(get_db),
):
    oid = parse_object_id(product_id, "Invalid product id!")
    if image is None:
        raise UploadError("No image in the request!")
    require_product(db, oid)
    return replace_fields(db, oid, {"image": store_image(request, image)})


@router.put("/{product_id}", dependencies=admin)
def update_product(product_id: str, body: ProductUpdateBody, db=Depends(get_db)):
    oid = parse_object_id(product_id, "Invalid product id!")
    category = resolve_category(db, body.category)
    update = body.model_dump()
    update["category"] = category["_id"]
    return replace_fields(db, oid, update)
