from fastapi import APIRouter

# Public - discovery
from moviebooking.api.v1.public.catalog import (
    movies_router as public_movies_router,
    cinemas_router as public_cinemas_router,
    showtimes_router as public_showtimes_router,
)

# Public - bookings & payments
from moviebooking.api.v1.public.bookings import router as bookings_router, payments_router

# Public - user profile & membership
from moviebooking.api.v1.public.me import router as me_router

# Admin
from moviebooking.api.v1.admin.catalog import (
    movies_router as admin_movies_router,
    cinemas_router as admin_cinemas_router,
    showtimes_router as admin_showtimes_router,
)
from moviebooking.api.v1.admin.users import router as admin_users_router
from moviebooking.api.v1.admin.bookings import router as admin_bookings_router

api_router = APIRouter()

# --- Public: discovery ---
api_router.include_router(public_movies_router)
api_router.include_router(public_cinemas_router)
api_router.include_router(public_showtimes_router)

# --- Public: bookings & payments ---
api_router.include_router(bookings_router)
api_router.include_router(payments_router)

# --- Public: profile & membership ---
api_router.include_router(me_router)

# --- Admin ---
api_router.include_router(admin_movies_router)
api_router.include_router(admin_cinemas_router)
api_router.include_router(admin_showtimes_router)
api_router.include_router(admin_users_router)
api_router.include_router(admin_bookings_router)
