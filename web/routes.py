"""
web/routes.py -- Jinja2 template routes for the storefront pages.

These routes serve server-rendered HTML. They share app.state with the API
routes (same local storage, same collection clients) but return HTML instead
of JSON.

Every page handler starts with the navigation guard for its route:
    if redirect := _guard(request, "Users"):
        return redirect
The guard decision comes from core.navigation; this module turns RedirectTo
into a 302 whose URL carries next=<guarded path>, and POST /login sends the
user back there.

Routes:
  GET  /                           -- home
  GET  /login                      -- login form
  POST /login                      -- handle login, write session
  POST /logout                     -- clear session, redirect /login
  GET  /productos                  -- product list + create form
  POST /productos                  -- create product
  POST /productos/{id}             -- update product
  POST /productos/{id}/delete      -- delete product
  GET  /users                      -- user list (session required)
  POST /users                      -- create user (session required)
  POST /users/{id}/delete          -- delete user (session required)
"""

import logging
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode, urlparse

from fastapi import APIRouter, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from auth.dependencies import ensure_client_profile, get_session, try_get_current_user
from auth.service import AuthService, InvalidCredentials, ServiceUnavailable
from core.models import Product, User
from core.navigation import NavigationGuard, RedirectTo, router as route_table
from core.resources import RequestError, ResourceClient

logger = logging.getLogger("condestyle.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
# Expose try_get_current_user as a Jinja2 global so layout.html can show the
# logged-in user without every handler passing it explicitly.
templates.env.globals["try_get_current_user"] = try_get_current_user
templates.env.globals["routes"] = route_table.routes
router = APIRouter()

# ---------------------------------------------------------------------------
# Guard helpers
# ---------------------------------------------------------------------------

# Whitelist mapping for ?error= query params on /login.
# The raw query param is NEVER passed to templates -- only the message from
# this dict is.
_ERROR_MESSAGES: dict[str, str] = {
    "bad_credentials": "Invalid username or password.",
    "service_unavailable": "Login is temporarily unavailable. Please try again.",
}


def _safe_next(next_url: Optional[str]) -> str:
    """Validate a post-login redirect target. Only accept relative paths.

    Rejects absolute URLs and protocol-relative URLs ("//host") so a crafted
    /login?next= cannot send the user off-site.
    """
    if next_url and next_url.startswith("/") and not next_url.startswith("//"):
        return next_url
    return "/"


def _login_url(path: str = "/login", next_path: Optional[str] = None, error: Optional[str] = None) -> str:
    """Build a login URL carrying the page to return to and an error code."""
    params = {}
    if error:
        params["error"] = error
    if next_path:
        params["next"] = next_path
    return f"{path}?{urlencode(params)}" if params else path


def _current_route(request: Request):
    """The route the browser is navigating from, taken from Referer. None on initial load."""
    referer = request.headers.get("referer")
    if not referer:
        return None
    return route_table.resolve(urlparse(referer).path)


def _guard(request: Request, route_name: str) -> Optional[RedirectResponse]:
    """Run the navigation guard for route_name.

    Returns a RedirectResponse when the guard says RedirectTo, None to proceed.
    """
    target = route_table.by_name(route_name)
    decision = NavigationGuard(get_session(request)).evaluate(target, _current_route(request))
    if isinstance(decision, RedirectTo):
        return RedirectResponse(_login_url(decision.path, next_path=target.path), status_code=302)
    return None


def _render(request: Request, name: str, context: Optional[dict] = None, status_code: int = 200) -> HTMLResponse:
    return templates.TemplateResponse(request, name, context or {}, status_code=status_code)


# ---------------------------------------------------------------------------
# GET / -- home
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse)
def home(request: Request) -> HTMLResponse:
    if redirect := _guard(request, "Home"):
        return redirect
    return _render(request, "home.html")


# ---------------------------------------------------------------------------
# Login / logout
# ---------------------------------------------------------------------------


@router.get("/login", response_class=HTMLResponse)
def login_form(request: Request) -> HTMLResponse:
    """Render the login page."""
    if redirect := _guard(request, "Login"):
        return redirect
    next_url = request.query_params.get("next")
    next_path = _safe_next(next_url) if next_url else None
    if try_get_current_user(request) is not None:
        return RedirectResponse(next_path or "/", status_code=302)

    error_msg = _ERROR_MESSAGES.get(request.query_params.get("error", ""), None)
    return _render(request, "login.html", {"error_msg": error_msg, "next": next_path})


@router.post("/login", response_class=HTMLResponse)
def login_post(
    request: Request,
    identifier: str = Form(...),
    password: str = Form(...),
) -> RedirectResponse:
    """Handle the login form. identifier is a username or an email."""
    auth: AuthService = request.app.state.auth
    next_url = request.query_params.get("next")
    next_path = _safe_next(next_url) if next_url else None
    try:
        user = auth.login(identifier, password)
    except InvalidCredentials:
        return RedirectResponse(_login_url(next_path=next_path, error="bad_credentials"), status_code=302)
    except ServiceUnavailable:
        return RedirectResponse(_login_url(next_path=next_path, error="service_unavailable"), status_code=302)

    resp = RedirectResponse(next_path or "/", status_code=302)
    session = ensure_client_profile(request, resp)
    session.set(user)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/logout")
def logout(request: Request) -> RedirectResponse:
    """Clear the session and redirect to the login page."""
    AuthService.logout(get_session(request))
    return RedirectResponse("/login", status_code=302)


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


def _product_form(name: str, price: str, image: str, description: str) -> dict:
    """Build a product record from form fields. Raises ValueError on a bad price."""
    product = Product(
        name=name.strip(),
        price=float(price),
        image=image.strip() or None,
        description=description.strip() or None,
    )
    if not product.name:
        raise ValueError("Name is required.")
    if product.price < 0:
        raise ValueError("Price must not be negative.")
    return product.to_record()


def _products_page(request: Request, error_msg: Optional[str] = None, status_code: int = 200) -> HTMLResponse:
    products_client: ResourceClient = request.app.state.products
    products: list[Product] = []
    try:
        products = [Product.from_record(r) for r in products_client.get_all()]
    except RequestError as e:
        logger.warning("Could not load products: %s", e)
        error_msg = error_msg or "Products could not be loaded."
        status_code = 502
    return _render(request, "products.html", {"products": products, "error_msg": error_msg}, status_code=status_code)


@router.get("/productos", response_class=HTMLResponse)
def products_page(request: Request) -> HTMLResponse:
    if redirect := _guard(request, "Products"):
        return redirect
    return _products_page(request)


@router.post("/productos", response_class=HTMLResponse)
def create_product(
    request: Request,
    name: str = Form(...),
    price: str = Form(...),
    image: str = Form(""),
    description: str = Form(""),
) -> HTMLResponse:
    if redirect := _guard(request, "Products"):
        return redirect
    try:
        record = _product_form(name, price, image, description)
    except ValueError as e:
        return _products_page(request, error_msg=str(e), status_code=400)
    try:
        request.app.state.products.create(record)
    except RequestError as e:
        logger.warning("Could not create product: %s", e)
        return _products_page(request, error_msg="The product could not be saved.", status_code=502)
    return RedirectResponse("/productos", status_code=302)


@router.post("/productos/{product_id}", response_class=HTMLResponse)
def update_product(
    request: Request,
    product_id: str,
    name: str = Form(...),
    price: str = Form(...),
    image: str = Form(""),
    description: str = Form(""),
) -> HTMLResponse:
    if redirect := _guard(request, "Products"):
        return redirect
    try:
        record = _product_form(name, price, image, description)
    except ValueError as e:
        return _products_page(request, error_msg=str(e), status_code=400)
    try:
        request.app.state.products.update(product_id, record)
    except RequestError as e:
        logger.warning("Could not update product %s: %s", product_id, e)
        return _products_page(request, error_msg="The product could not be saved.", status_code=502)
    return RedirectResponse("/productos", status_code=302)


@router.post("/productos/{product_id}/delete", response_class=HTMLResponse)
def delete_product(request: Request, product_id: str) -> HTMLResponse:
    if redirect := _guard(request, "Products"):
        return redirect
    try:
        request.app.state.products.delete(product_id)
    except RequestError as e:
        logger.warning("Could not delete product %s: %s", product_id, e)
        return _products_page(request, error_msg="The product could not be deleted.", status_code=502)
    return RedirectResponse("/productos", status_code=302)


# ---------------------------------------------------------------------------
# Users (session required)
# ---------------------------------------------------------------------------


def _users_page(request: Request, error_msg: Optional[str] = None, status_code: int = 200) -> HTMLResponse:
    users_client: ResourceClient = request.app.state.users
    users: list[User] = []
    try:
        users = [User.from_record(r) for r in users_client.get_all()]
    except RequestError as e:
        logger.warning("Could not load users: %s", e)
        error_msg = error_msg or "Users could not be loaded."
        status_code = 502
    return _render(request, "users.html", {"users": users, "error_msg": error_msg}, status_code=status_code)


@router.get("/users", response_class=HTMLResponse)
def users_page(request: Request) -> HTMLResponse:
    if redirect := _guard(request, "Users"):
        return redirect
    return _users_page(request)


@router.post("/users", response_class=HTMLResponse)
def create_user(
    request: Request,
    username: str = Form(...),
    password: str = Form(...),
    email: str = Form(""),
) -> HTMLResponse:
    if redirect := _guard(request, "Users"):
        return redirect
    if not username.strip() or not password:
        return _users_page(request, error_msg="Username and password are required.", status_code=400)
    user = User(username=username.strip(), password=password, email=email.strip() or None)
    try:
        request.app.state.users.create(user.to_record())
    except RequestError as e:
        logger.warning("Could not create user: %s", e)
        return _users_page(request, error_msg="The user could not be saved.", status_code=502)
    return RedirectResponse("/users", status_code=302)


@router.post("/users/{user_id}/delete", response_class=HTMLResponse)
def delete_user(request: Request, user_id: str) -> HTMLResponse:
    if redirect := _guard(request, "Users"):
        return redirect
    try:
        request.app.state.users.delete(user_id)
    except RequestError as e:
        logger.warning("Could not delete user %s: %s", user_id, e)
        return _users_page(request, error_msg="The user could not be deleted.", status_code=502)
    return RedirectResponse("/users", status_code=302)
