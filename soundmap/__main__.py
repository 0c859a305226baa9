"""Entry: serve the API with uvicorn."""
import uvicorn

from soundmap.settings import API_HOST, API_PORT

if __name__ == "__main__":
    uvicorn.run("soundmap.main:app", host=API_HOST, port=API_PORT)
