from src.web.app import main

main()
