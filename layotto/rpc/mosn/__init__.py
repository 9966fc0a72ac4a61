"""Invoker, channels, connection pool and bolt and dubbo transport protocols."""