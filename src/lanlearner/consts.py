VERSION = "0.4.0"
APP_NAME = "lanlearner"
