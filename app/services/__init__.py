"""
服务层模块

申请、任务、审批、结算四个业务组件，以及外部协作方的网关和通知投递。
"""
