"""
Brain age pipeline: preprocessing, template registration, augmentation and prediction.
"""
