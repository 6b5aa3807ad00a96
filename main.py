import os
import logging
import secrets
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, FastAPI, HTTPException, Depends, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import Field

from context import AppContext
from catalog import visible_to
from database import get_store
from gemini import AdvisorService
from orders import CheckoutDeclined, display_date
from schemas import Language, Record, Role, User, UserUpdate, InventoryItem
from session import ValidationFailure, format_phone, validate_phone, verify_otp
from voice import VoiceAssistant

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))
logger = logging.getLogger(__name__)

# ----------------------
# Helpers
# ----------------------

def get_context(request: Request) -> AppContext:
    return request.app.state.context

def get_advisor(request: Request) -> AdvisorService:
    return request.app.state.advisor

def get_voice(request: Request) -> VoiceAssistant:
    # One assistant per request; its transcript and feedback are per utterance
    return VoiceAssistant(request.app.state.advisor, lambda: request.app.state.context.language)

async def get_current_user(ctx: AppContext = Depends(get_context)) -> User:
    if ctx.user is None:
        raise HTTPException(status_code=401, detail="Not logged in")
    return ctx.user

def with_save(ctx: AppContext, body: dict) -> dict:
    body["persisted"] = ctx.last_save.persisted
    if ctx.last_save.detail:
        body["detail"] = ctx.last_save.detail
    return body

def cart_view(ctx: AppContext) -> dict:
    return {"items": ctx.cart_items(), "total": ctx.cart.total()}

# Routes touching AppContext are async so they run one at a time on the event loop
router = APIRouter()

# ----------------------
# Health & test
# ----------------------
@router.get("/")
def read_root():
    return {"message": "Kisan Market API running"}

@router.get("/test")
async def test_store(ctx: AppContext = Depends(get_context)):
    response = {
        "backend": "✅ Running",
        "database_url": "✅ Set" if os.getenv("DATABASE_URL") else "❌ Not Set",
        "database_name": "✅ Set" if os.getenv("DATABASE_NAME") else "❌ Not Set",
    }
    response.update(ctx.store.status())
    return response

@router.get("/state")
async def state(ctx: AppContext = Depends(get_context)):
    return ctx.snapshot()

# ----------------------
# Auth routes
# ----------------------
class OtpBody(Record):
    phone: str

@router.post("/auth/otp")
async def send_otp(body: OtpBody):
    try:
        digits = validate_phone(body.phone)
    except ValidationFailure as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"sent": True, "phone": format_phone(digits)}

class LoginBody(Record):
    role: Role
    phone: Optional[str] = None
    otp: Optional[str] = None

@router.post("/auth/login")
async def login(body: LoginBody, ctx: AppContext = Depends(get_context)):
    phone = None
    try:
        if body.phone:
            phone = format_phone(validate_phone(body.phone))
            verify_otp(body.otp or "")
    except ValidationFailure as e:
        raise HTTPException(status_code=400, detail=str(e))
    user = ctx.login(body.role, phone)
    return with_save(ctx, {"user": user})

@router.post("/auth/logout")
async def logout(ctx: AppContext = Depends(get_context)):
    ctx.logout()
    return with_save(ctx, {"ok": True})

@router.get("/me")
async def me(current: User = Depends(get_current_user)):
    return current

@router.patch("/me")
async def update_me(body: UserUpdate, ctx: AppContext = Depends(get_context), current: User = Depends(get_current_user)):
    user = ctx.update_profile(body)
    return with_save(ctx, {"user": user})

class LanguageBody(Record):
    language: Language

@router.put("/language")
async def set_language(body: LanguageBody, ctx: AppContext = Depends(get_context)):
    ctx.set_language(body.language)
    return {"language": ctx.language}

# ----------------------
# Marketplace
# ----------------------
@router.get("/marketplace")
async def marketplace(role: Optional[Role] = Query(None), ctx: AppContext = Depends(get_context)):
    products = ctx.marketplace
    if role:
        products = visible_to(products, role)
    return products

@router.get("/weather")
async def weather(ctx: AppContext = Depends(get_context)):
    return ctx.weather

# ----------------------
# Cart
# ----------------------
class CartAddBody(Record):
    product_id: str

@router.get("/cart")
async def get_cart(ctx: AppContext = Depends(get_context)):
    return cart_view(ctx)

@router.post("/cart")
async def add_to_cart(body: CartAddBody, ctx: AppContext = Depends(get_context)):
    product = ctx.catalog.get(body.product_id)
    if not product:
        raise HTTPException(status_code=404, detail=f"Product not found: {body.product_id}")
    ctx.add_to_cart(product)
    return cart_view(ctx)

@router.delete("/cart/{product_id}")
async def remove_from_cart(product_id: str, ctx: AppContext = Depends(get_context)):
    ctx.remove_from_cart(product_id)
    return cart_view(ctx)

@router.delete("/cart")
async def clear_cart(ctx: AppContext = Depends(get_context)):
    ctx.clear_cart()
    return cart_view(ctx)

# ----------------------
# Orders
# ----------------------
@router.post("/checkout")
async def checkout(ctx: AppContext = Depends(get_context)):
    # No login required: a checkout without a session is recorded as a SALE
    try:
        order = ctx.place_order()
    except CheckoutDeclined as e:
        logger.warning("Checkout declined: %s", e)
        raise HTTPException(status_code=402, detail=str(e))
    if order is None:
        raise HTTPException(status_code=400, detail="Cart is empty")
    return with_save(ctx, {"order": order})

@router.get("/orders")
async def my_orders(ctx: AppContext = Depends(get_context), current: User = Depends(get_current_user)):
    return ctx.orders

# ----------------------
# Inventory (farmers)
# ----------------------
class InventoryBody(Record):
    name: str
    category: Literal["CROP", "INPUT"] = "CROP"
    price: float = Field(..., gt=0)
    unit: str = "kg"
    quantity: float = Field(..., ge=0)
    expiry_date: Optional[str] = None
    image: str = ""
    loss_record: Optional[float] = Field(None, ge=0)

@router.get("/inventory")
async def get_inventory(ctx: AppContext = Depends(get_context), current: User = Depends(get_current_user)):
    return ctx.inventory

@router.post("/inventory")
async def add_inventory(body: InventoryBody, ctx: AppContext = Depends(get_context), current: User = Depends(get_current_user)):
    if current.role != "FARMER":
        raise HTTPException(status_code=403, detail="Only farmers can keep inventory")
    item = InventoryItem(
        id=f"inv-{secrets.token_hex(4)}",
        seller_id=current.id,
        added_date=display_date(datetime.now()),
        **body.model_dump(),
    )
    ctx.add_to_inventory(item)
    return with_save(ctx, {"item": item})

# ----------------------
# Connectivity
# ----------------------
class ConnectivityBody(Record):
    online: bool

@router.get("/status")
async def status(ctx: AppContext = Depends(get_context)):
    return {"isOnline": ctx.is_online}

@router.put("/connectivity")
async def connectivity(body: ConnectivityBody, ctx: AppContext = Depends(get_context)):
    changed = ctx.set_online(body.online)
    return {"isOnline": ctx.is_online, "changed": changed}

# ----------------------
# AI advisor
# ----------------------
@router.get("/recommendations")
async def recommendations(
    context: str = Query("general crop management"),
    ctx: AppContext = Depends(get_context),
    advisor: AdvisorService = Depends(get_advisor),
):
    return await advisor.get_recommendations(ctx.language, context)

class TranslateBody(Record):
    text: str
    target_language: Language

@router.post("/translate")
async def translate(body: TranslateBody, advisor: AdvisorService = Depends(get_advisor)):
    return {"text": await advisor.translate_text(body.text, body.target_language)}

class VoiceBody(Record):
    transcript: str = Field(..., min_length=1)

@router.post("/voice")
async def voice(body: VoiceBody, assistant: VoiceAssistant = Depends(get_voice)):
    assistant.on_start()
    try:
        result = await assistant.on_result(body.transcript)
    finally:
        assistant.on_end()
    return result

# ----------------------
# App factory
# ----------------------

def create_app(context: Optional[AppContext] = None, advisor: Optional[AdvisorService] = None) -> FastAPI:
    app = FastAPI(title="Kisan Market API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.context = context or AppContext(get_store())
    app.state.advisor = advisor or AdvisorService()
    app.include_router(router)
    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
