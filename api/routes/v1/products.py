"""
api/routes/v1/products.py -- Products collection pass-through.

Routes:
  GET    /products         -- list all products
  POST   /products         -- create a product
  GET    /products/{id}    -- one product
  PUT    /products/{id}    -- replace a product
  DELETE /products/{id}    -- delete a product

Every handler is a single round trip to the products collection. Failures
surface as RequestError / NotFoundError and are turned into 502 / 404 by the
exception handlers in api/main.py.
"""

from fastapi import APIRouter, Request

from api.limiter import limiter
from api.models import ProductIn, ProductOut
from core.resources import ResourceClient

# Auth policy: public. /productos carries no requires_auth flag, so neither
# does the JSON surface behind it.
router = APIRouter()


def _products(request: Request) -> ResourceClient:
    return request.app.state.products


@limiter.limit("60/minute")
@router.get("/products", response_model=list[ProductOut])
def list_products(request: Request) -> list[ProductOut]:
    return [ProductOut.from_record(r) for r in _products(request).get_all()]


@limiter.limit("30/minute")
@router.post("/products", response_model=ProductOut, status_code=201)
def create_product(request: Request, body: ProductIn) -> ProductOut:
    """Create a product. The response includes the id assigned by the remote API."""
    return ProductOut.from_record(_products(request).create(body.to_record()))


@router.get("/products/{product_id}", response_model=ProductOut)
def get_product(request: Request, product_id: str) -> ProductOut:
    return ProductOut.from_record(_products(request).get_by_id(product_id))


@limiter.limit("30/minute")
@router.put("/products/{product_id}", response_model=ProductOut)
def update_product(request: Request, product_id: str, body: ProductIn) -> ProductOut:
    return ProductOut.from_record(_products(request).update(product_id, body.to_record()))


@limiter.limit("30/minute")
@router.delete("/products/{product_id}", response_model=ProductOut)
def delete_product(request: Request, product_id: str) -> ProductOut:
    """Delete a product and return the deleted record."""
    return ProductOut.from_record(_products(request).delete(product_id))
