from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from repomap import __version__
from repomap.api.routes import router

app = FastAPI(
    title="Repository Map Generator",
    version=__version__,
)

# Middleware FIRST
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes AFTER middleware
app.include_router(router)
