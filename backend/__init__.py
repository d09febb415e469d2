# backend -- FastAPI server + relational models
#
# Modules:
#   app            -- FastAPI application with lifespan management
#   database       -- PostgreSQL / SQLite async engine
#   models         -- SQLAlchemy ORM models (markets, categories, businesses, products, ...)
#   schemas        -- Pydantic request/response schemas
#   sql_store      -- DirectoryStore over SQLAlchemy sessions
#   deps           -- FastAPI dependencies + store error -> HTTP mapping
#   seed_directory -- schema creation, sample data, table verification
#   embeddings     -- product embeddings for visual search
#   routes/        -- API endpoints (listings, reference, search)
