"""Build pipeline: conversion, staleness tracking, packing."""
