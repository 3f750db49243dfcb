import logging
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pymongo.database import Database

from config import APP_NAME, Settings, configure_logging
from database import connect
from errors import ServiceError
from schemas import OrderIn, PlantIn, QuantityUpdate, RoleUpdate, TokenRequest, UserIn
from security import (
    Identity,
    clear_token_cookie,
    get_db,
    get_settings,
    get_user_directory,
    issue_token,
    set_token_cookie,
    verify_admin,
    verify_seller,
    verify_token,
)
from services import OrderService, PlantInventory, UserDirectory

logger = logging.getLogger(__name__)


def get_plants(db: Database = Depends(get_db)) -> PlantInventory:
    return PlantInventory(db)


def get_orders(db: Database = Depends(get_db)) -> OrderService:
    return OrderService(db)


def create_app(settings: Optional[Settings] = None, db: Optional[Database] = None) -> FastAPI:
    settings = settings or Settings()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = None
        if app.state.db is None:
            client = connect(settings.database_url, settings.database_name)
            app.state.db = client[settings.database_name]
        yield
        if client is not None:
            client.close()
            logger.info("MongoDB connection closed")

    app = FastAPI(title=f"{APP_NAME} API", lifespan=lifespan)
    app.state.settings = settings
    app.state.db = db

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def access_log(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = (time.perf_counter() - start) * 1000
        logger.info("%s %s %s %.1f ms", request.method, request.url.path, response.status_code, elapsed)
        return response

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError):
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"message": "internal server error"})

    register_routes(app)
    return app


def register_routes(app: FastAPI) -> None:
    @app.get("/", response_class=PlainTextResponse)
    def root():
        return "Hello from plantNet Server.."

    # Simple health
    @app.get("/test")
    def test_database(db: Database = Depends(get_db)):
        status = {
            "backend": "running",
            "database": "not-configured",
            "collections": [],
        }
        if db is None:
            return status
        try:
            status["collections"] = db.list_collection_names()[:10]
            status["database"] = "connected"
        except Exception as exc:
            logger.warning("Database check failed: %s", exc)
            status["database"] = "error"
        return status

    # Auth Endpoints
    @app.post("/jwt")
    def create_jwt(payload: TokenRequest, settings: Settings = Depends(get_settings)):
        token = issue_token(payload.model_dump(mode="json"), settings)
        response = JSONResponse({"success": True})
        set_token_cookie(response, token, settings)
        return response

    @app.get("/logout")
    def logout(settings: Settings = Depends(get_settings)):
        response = JSONResponse({"success": True})
        clear_token_cookie(response, settings)
        return response

    # Users
    @app.post("/users/{email}")
    def save_user(email: str, payload: UserIn, users: UserDirectory = Depends(get_user_directory)):
        return users.upsert_if_absent(email, payload.model_dump(mode="json", exclude_none=True))

    @app.patch("/users/{email}")
    def request_seller(
        email: str,
        identity: Identity = Depends(verify_token),
        users: UserDirectory = Depends(get_user_directory),
    ):
        return users.request_upgrade(email)

    @app.get("/user/role/{email}")
    def get_user_role(email: str, users: UserDirectory = Depends(get_user_directory)):
        return {"role": users.get_role(email)}

    @app.get("/all-users/{email}")
    def list_users(
        email: str,
        admin: Identity = Depends(verify_admin),
        users: UserDirectory = Depends(get_user_directory),
    ):
        return users.list_all_except(email)

    @app.patch("/user/role/{email}")
    def update_user_role(
        email: str,
        payload: RoleUpdate,
        admin: Identity = Depends(verify_admin),
        users: UserDirectory = Depends(get_user_directory),
    ):
        return users.set_role(email, payload.role)

    # Plants
    @app.get("/plants/seller")
    def seller_plants(seller: Identity = Depends(verify_seller), plants: PlantInventory = Depends(get_plants)):
        return plants.list_by_seller(seller.email)

    @app.delete("/plants/{plant_id}")
    def delete_plant(
        plant_id: str,
        seller: Identity = Depends(verify_seller),
        plants: PlantInventory = Depends(get_plants),
    ):
        return plants.delete_by_id(plant_id, seller.email)

    @app.post("/plants")
    def create_plant(
        payload: PlantIn,
        seller: Identity = Depends(verify_seller),
        plants: PlantInventory = Depends(get_plants),
    ):
        return plants.create(payload, seller.email)

    @app.get("/plants")
    def list_plants(plants: PlantInventory = Depends(get_plants)):
        return plants.list_all()

    @app.get("/plant/{plant_id}")
    def get_plant(plant_id: str, plants: PlantInventory = Depends(get_plants)):
        return plants.get_by_id(plant_id)

    @app.patch("/plants/quantity/{plant_id}")
    def update_quantity(
        plant_id: str,
        payload: QuantityUpdate,
        identity: Identity = Depends(verify_token),
        plants: PlantInventory = Depends(get_plants),
    ):
        return plants.adjust_quantity(plant_id, payload.quantityToUpdate, payload.status)

    # Orders
    @app.post("/order")
    def create_order(
        payload: OrderIn,
        identity: Identity = Depends(verify_token),
        orders: OrderService = Depends(get_orders),
    ):
        return orders.create(payload)

    @app.get("/customer-orders/{email}")
    def customer_orders(
        email: str,
        identity: Identity = Depends(verify_token),
        orders: OrderService = Depends(get_orders),
    ):
        return orders.list_by_customer(email)

    @app.get("/seller-orders/{email}")
    def seller_orders(
        email: str,
        seller: Identity = Depends(verify_seller),
        orders: OrderService = Depends(get_orders),
    ):
        return orders.list_by_seller(email)

    @app.delete("/order/{order_id}")
    def cancel_order(
        order_id: str,
        identity: Identity = Depends(verify_token),
        orders: OrderService = Depends(get_orders),
    ):
        return orders.cancel(order_id)


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=app.state.settings.port)
