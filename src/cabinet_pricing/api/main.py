from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, ValidationError
from typing import Optional
import pandas as pd

from cabinet_pricing import __version__
from cabinet_pricing.api.rules_api import router as rules_router, RuleCreate
from cabinet_pricing.api.state import get_catalog, get_engine, get_presets
from cabinet_pricing.catalog.product_catalog import ProductCatalog
from cabinet_pricing.config.logging_config import configure_logging
from cabinet_pricing.engine import PricingEngine
from cabinet_pricing.quotes.quote_totals import Quote, calculate_totals
from cabinet_pricing.services.presets_service import PresetsService

configure_logging()

app = FastAPI(
    title="Cabinet Pricing API",
    description="Pricing rules, presets and quote totals for the cabinet quoting app",
    version=__version__,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include rules management API
app.include_router(rules_router)


class PriceRequest(BaseModel):
    base_price: float
    width: float
    height: float
    depth: float
    rules: Optional[list[RuleCreate]] = None


class Dimensions(BaseModel):
    width: float
    height: float
    depth: float


@app.get("/")
async def root():
    return {"status": "online", "message": "Cabinet Pricing API Active"}


@app.post("/price")
async def calculate_price(req: PriceRequest, engine: PricingEngine = Depends(get_engine)):
    rules = [r.to_rule() for r in req.rules] if req.rules is not None else None
    result = engine.calculate(req.base_price, req.width, req.height, req.depth, rules=rules)
    return jsonable_encoder(result)


@app.get("/api/presets")
async def get_preset_values(presets: PresetsService = Depends(get_presets)):
    return presets.get_preset_values().model_dump()


@app.put("/api/presets")
async def update_preset_values(values: dict, presets: PresetsService = Depends(get_presets)):
    try:
        return presets.update_preset_values(values).model_dump()
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=jsonable_encoder(e.errors(include_url=False)))


@app.get("/api/catalog")
async def search_catalog(
    search: Optional[str] = None,
    category: Optional[str] = None,
    catalog: ProductCatalog = Depends(get_catalog),
):
    df = catalog.search(search, category, limit=200 if search else 100)
    df = df.astype(object).where(pd.notna(df), None)
    return df.reset_index().to_dict(orient="records")


@app.post("/api/catalog/{product_id}/price")
async def price_product(
    product_id: str,
    dims: Dimensions,
    catalog: ProductCatalog = Depends(get_catalog),
    engine: PricingEngine = Depends(get_engine),
):
    product = catalog.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail=f"Product '{product_id}' not found")
    price = catalog.price_product(product_id, dims.width, dims.height, dims.depth, rules=engine.get_rules())
    return {"product": product, "displayed_price": price}


@app.post("/api/quotes/totals")
async def quote_totals(quote: Quote, presets: PresetsService = Depends(get_presets)):
    tax_rate = presets.get_preset_values().tax_rate
    return jsonable_encoder(calculate_totals(quote, tax_rate))


@app.get("/system/status")
async def get_status(engine: PricingEngine = Depends(get_engine)):
    return {
        "engine_active": True,
        "rules_loaded": engine.loaded,
        "rules_count": len(engine.rules),
    }
