from mdserve._cli import main

main()
