import uvicorn
from vpnwatch.logging_utility import Logger, logger


if __name__=='__main__':
    Logger().enable_console()
    logger.info("Starting VPNWatch service")
    uvicorn.run("vpnwatch.main:create_app", factory=True, host="0.0.0.0", port=8000)
