import uvicorn
from tunnel_config.main import app
from tunnel_config.logging_utility import logger


if __name__=='__main__':
    logger.info("Starting Tunnel Config service")
    # routes are mutated on behalf of the caller; never listen beyond loopback
    uvicorn.run(app, host='127.0.0.1', port=8000)
