# storefront/product_service/main.py
import threading

from fastapi import FastAPI, HTTPException

from storefront.domain.schemas import StockChangeIn

app = FastAPI(title="Product Service (dev mock)")

# stan magazynu w pamieci, zmieniany pod lockiem
_stock_lock = threading.Lock()

VARIANTS = {
    "v-tee-m-black": {
        "variant_id": "v-tee-m-black",
        "display_name": "Basic Tee",
        "variant_label": "M / Black",
        "unit_price": "45000.00",
        "available_stock": 10,
    },
    "v-tee-l-white": {
        "variant_id": "v-tee-l-white",
        "display_name": "Basic Tee",
        "variant_label": "L / White",
        "unit_price": "45000.00",
        "available_stock": 4,
    },
    "v-jeans-32": {
        "variant_id": "v-jeans-32",
        "display_name": "Slim Jeans",
        "variant_label": "32",
        "unit_price": "129900.00",
        "available_stock": 6,
    },
}


@app.get("/variants/{variant_id}")
def get_variant(variant_id: str):
    variant = VARIANTS.get(variant_id)
    if not variant:
        raise HTTPException(status_code=404, detail="Variant not found")
    return variant


@app.post("/variants/{variant_id}/stock/decrement")
def decrement_stock(variant_id: str, payload: StockChangeIn):
    with _stock_lock:
        variant = VARIANTS.get(variant_id)
        if not variant:
            raise HTTPException(status_code=404, detail="Variant not found")
        if variant["available_stock"] < payload.quantity:
            raise HTTPException(status_code=409, detail="Insufficient stock")
        variant["available_stock"] -= payload.quantity
        return variant


@app.post("/variants/{variant_id}/stock/increment")
def increment_stock(variant_id: str, payload: StockChangeIn):
    with _stock_lock:
        variant = VARIANTS.get(variant_id)
        if not variant:
            raise HTTPException(status_code=404, detail="Variant not found")
        variant["available_stock"] += payload.quantity
        return variant
